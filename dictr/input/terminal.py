"""
Keyboard input simulation for dictr.

Delivers transcribed text to the focused window on X11 and Wayland, either
by typing it key by key or by pasting it through the clipboard.
"""

import logging
import os
import shutil
import subprocess
import time

from ..exceptions import InputSimulationError, YdotoolNotAvailableError

logger = logging.getLogger(__name__)

# Linux input event codes used with ``ydotool key``
_KEY_LEFTSHIFT = 42
_KEY_INSERT = 110


class TerminalInput:
    """
    Keyboard input simulator for typing text automatically.

    Platform-aware backends:
    - X11: pynput for typing, xclip plus shift+Insert for pasting
    - Wayland: ydotool for typing, wl-copy plus shift+Insert for pasting

    shift+Insert pastes in terminals as well as in regular text fields,
    which is why it is used instead of ctrl+V. Both the clipboard and the
    primary selection are written so either paste source works.

    Attributes:
        delay_ms: Delay between keystrokes in milliseconds.
        paste: Paste through the clipboard instead of typing.
        is_wayland: True if running under Wayland display server.
        backend: The active backend ("x11" or "wayland").

    Example:
        >>> output = TerminalInput(delay_ms=2)
        >>> output.send("Hello, World!")

    Note:
        On Wayland, ydotool must be installed and the ydotoold daemon
        must be running. Use check_wayland_requirements() to verify.
    """

    def __init__(self, delay_ms: int = 2, paste: bool = False) -> None:
        """
        Detect the display server and verify the required tools.

        Args:
            delay_ms: Delay between keystrokes in milliseconds.
            paste: Paste text instead of typing it.

        Raises:
            ValueError: If delay_ms is negative.
            YdotoolNotAvailableError: On Wayland, if ydotool is missing or
                ydotoold is not running.
            InputSimulationError: In paste mode, if the clipboard tool is
                missing.
        """
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")

        self.delay_ms = delay_ms
        self.paste = paste
        self.is_wayland = self._detect_wayland()
        self.backend = "wayland" if self.is_wayland else "x11"

        self._keyboard = None  # Lazy-loaded pynput keyboard

        if self.is_wayland:
            requirements = self.check_wayland_requirements()
            if not requirements["ydotool_installed"]:
                raise YdotoolNotAvailableError(
                    "ydotool not found. Install it with: sudo dnf install ydotool "
                    "(Fedora) or sudo apt install ydotool (Ubuntu/Debian)"
                )
            if not requirements["ydotoold_running"]:
                raise YdotoolNotAvailableError(
                    "ydotoold is not running. Start it with: systemctl --user start ydotool"
                )

        if paste:
            tool = "wl-copy" if self.is_wayland else "xclip"
            if shutil.which(tool) is None:
                raise InputSimulationError(
                    f"{tool} not found. Install it (e.g. apt install "
                    f"{'wl-clipboard' if self.is_wayland else 'xclip'})"
                )

        mode = "paste" if paste else f"type, delay={delay_ms}ms"
        logger.info(f"TerminalInput initialized (backend={self.backend}, {mode})")

    @staticmethod
    def _detect_wayland() -> bool:
        session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
        if session_type == "wayland":
            return True
        if session_type == "x11":
            return False

        return bool(os.environ.get("WAYLAND_DISPLAY"))

    @staticmethod
    def check_wayland_requirements() -> dict:
        """
        Check if Wayland requirements for input simulation are met.

        Returns:
            A dictionary with requirement status:
            - "ydotool_installed" (bool): True if ydotool binary is found
            - "ydotoold_running" (bool): True if ydotoold daemon responds
            - "ydotool_path" (str | None): Path to ydotool binary if installed
        """
        ydotool_path = shutil.which("ydotool")
        result = {
            "ydotool_installed": ydotool_path is not None,
            "ydotoold_running": False,
            "ydotool_path": ydotool_path,
        }

        if ydotool_path is None:
            return result

        try:
            completed = subprocess.run(
                ["ydotool", "type", ""],
                capture_output=True,
                timeout=2,
                check=False
            )
            result["ydotoold_running"] = completed.returncode == 0
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"ydotool check failed: {e}")

        return result

    def _get_keyboard(self):
        """
        Lazy-load and return the pynput keyboard controller.

        Raises:
            InputSimulationError: If pynput cannot be imported or initialized.
        """
        if self._keyboard is None:
            try:
                from pynput.keyboard import Controller
                self._keyboard = Controller()
            except ImportError as e:
                raise InputSimulationError(
                    "pynput is not installed. Install it with: pip install pynput"
                ) from e
            except Exception as e:
                raise InputSimulationError(
                    f"Could not initialize keyboard controller: {e}"
                ) from e
        return self._keyboard

    def send(self, text: str) -> None:
        """Deliver text to the focused window using the configured mode."""
        if self.paste:
            self.paste_text(text)
        else:
            self.type_text(text)

    def type_text(self, text: str) -> None:
        """
        Type the given text using simulated keyboard input.

        Raises:
            InputSimulationError: If keyboard simulation fails.
        """
        if not text:
            logger.debug("Empty text provided, nothing to type")
            return

        logger.debug(f"Typing text ({len(text)} chars) via {self.backend}")

        try:
            if self.is_wayland:
                self._type_text_wayland(text)
            else:
                self._type_text_x11(text)
        except (InputSimulationError, YdotoolNotAvailableError):
            raise
        except Exception as e:
            raise InputSimulationError(f"Typing failed: {e}") from e

    def _type_text_x11(self, text: str) -> None:
        keyboard = self._get_keyboard()
        delay_seconds = self.delay_ms / 1000.0

        try:
            for char in text:
                keyboard.type(char)
                if delay_seconds > 0:
                    time.sleep(delay_seconds)
        except Exception as e:
            raise InputSimulationError(f"X11 typing failed: {e}") from e

    def _type_text_wayland(self, text: str) -> None:
        self._run_ydotool(
            ["ydotool", "type", "--key-delay", str(self.delay_ms), "--", text],
            timeout=30
        )

    def paste_text(self, text: str) -> None:
        """
        Put text on the clipboard and primary selection, then send shift+Insert.

        Raises:
            InputSimulationError: If the clipboard cannot be written or the
                key combination cannot be sent.
        """
        if not text:
            logger.debug("Empty text provided, nothing to paste")
            return

        logger.debug(f"Pasting text ({len(text)} chars) via {self.backend}")

        if self.is_wayland:
            self._copy(["wl-copy"], text)
            self._copy(["wl-copy", "--primary"], text)
            self._run_ydotool(
                [
                    "ydotool", "key",
                    f"{_KEY_LEFTSHIFT}:1", f"{_KEY_INSERT}:1",
                    f"{_KEY_INSERT}:0", f"{_KEY_LEFTSHIFT}:0",
                ],
                timeout=5
            )
        else:
            for selection in ("clipboard", "primary"):
                self._copy(["xclip", "-selection", selection], text)
            self._press_shift_insert_x11()

    @staticmethod
    def _copy(cmd: list, text: str) -> None:
        try:
            result = subprocess.run(
                cmd,
                input=text,
                capture_output=True,
                text=True,
                timeout=5,
                check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise InputSimulationError(f"{cmd[0]} failed: {e}") from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() or f"exit status {result.returncode}"
            raise InputSimulationError(f"{' '.join(cmd)} failed: {error_msg}")

    def _press_shift_insert_x11(self) -> None:
        from pynput.keyboard import Key

        keyboard = self._get_keyboard()

        try:
            with keyboard.pressed(Key.shift):
                keyboard.press(Key.insert)
                keyboard.release(Key.insert)
        except Exception as e:
            raise InputSimulationError(f"X11 shift+Insert failed: {e}") from e

    @staticmethod
    def _run_ydotool(cmd: list, timeout: float) -> None:
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False
            )
        except subprocess.TimeoutExpired as e:
            raise YdotoolNotAvailableError("ydotool timed out") from e
        except FileNotFoundError as e:
            raise YdotoolNotAvailableError("ydotool not found") from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() or "Unknown error"
            raise YdotoolNotAvailableError(f"ydotool failed: {error_msg}")
