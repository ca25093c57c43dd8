"""
Global hotkey handling for dictr.

A single designated key drives push-to-talk. Raw key-down/key-up events from
the platform (pynput on X11, evdev on Wayland) are reduced to Pressed and
Released edges by ``HotkeyEdgeDetector`` and delivered in order through a
``queue.Queue`` to the orchestrator.
"""

import logging
import os
import queue
import threading
from enum import Enum
from typing import Optional

from ..exceptions import (
    EvdevPermissionError,
    HotkeyRegistrationError,
)
from .keys import evdev_code, parse_key, pynput_key

logger = logging.getLogger(__name__)

# Default push-to-talk key
DEFAULT_HOTKEY = "AltGr"

# evdev event values
_KEY_UP = 0
_KEY_DOWN = 1
_KEY_REPEAT = 2


class HotkeyEvent(Enum):
    """Logical hotkey edge."""

    PRESSED = "pressed"
    RELEASED = "released"


class HotkeyEdgeDetector:
    """
    Turns raw key events for one key into Pressed/Released edges.

    Key-repeat (a key-down while already down) and stray releases emit
    nothing; events for other keys are ignored.

    Example:
        >>> detector = HotkeyEdgeDetector("f9")
        >>> detector.handle("f9", True)
        <HotkeyEvent.PRESSED: 'pressed'>
        >>> detector.handle("f9", True) is None
        True
    """

    def __init__(self, target_key: str) -> None:
        self.target_key = target_key
        self.is_pressed = False

    def handle(self, key: str, is_down: bool) -> Optional[HotkeyEvent]:
        if key != self.target_key:
            return None

        if is_down:
            if not self.is_pressed:
                self.is_pressed = True
                return HotkeyEvent.PRESSED
        elif self.is_pressed:
            self.is_pressed = False
            return HotkeyEvent.RELEASED

        return None


def _detect_display_server() -> str:
    """
    Detect the current display server (X11 or Wayland).

    Returns:
        String identifying the display server: 'wayland', 'x11', or 'unknown'.
    """
    session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
    wayland_display = os.environ.get("WAYLAND_DISPLAY")

    if session_type == "wayland" or wayland_display:
        return "wayland"
    elif session_type == "x11" or os.environ.get("DISPLAY"):
        return "x11"
    return "unknown"


class HotkeyListener:
    """
    Background listener feeding hotkey edges into a queue.

    On X11 a pynput keyboard listener thread is used; on Wayland keyboards
    are read directly through evdev on a dedicated thread. In both cases the
    edge detector lives on the listener thread only.

    Example:
        >>> events = queue.Queue()
        >>> listener = HotkeyListener("F9", events)
        >>> listener.start()
        >>> events.get()
        <HotkeyEvent.PRESSED: 'pressed'>

    Note:
        On Wayland, the user must be a member of the 'input' group to access
        keyboard devices via evdev. Run: sudo usermod -aG input $USER
    """

    def __init__(self, hotkey: str, events: "queue.Queue[HotkeyEvent]") -> None:
        """
        Args:
            hotkey: Hotkey name, e.g. "AltGr" or "F9".
            events: Queue receiving HotkeyEvent values.

        Raises:
            HotkeyError: If the hotkey name is unknown.
        """
        self.hotkey = hotkey
        self._key_id = parse_key(hotkey)
        self._events = events
        self._detector = HotkeyEdgeDetector(self._key_id)
        self._display_server = _detect_display_server()
        self._running = False
        self._lock = threading.Lock()

        # Wayland: evdev thread and devices
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._evdev_devices: list = []
        self._evdev_target: Optional[int] = None

        # X11: pynput listener
        self._x11_listener = None
        self._x11_target = None

    @property
    def is_running(self) -> bool:
        return self._running

    def _emit(self, key: str, is_down: bool) -> None:
        event = self._detector.handle(key, is_down)
        if event is not None:
            logger.debug(f"Hotkey {event.value} ({self._display_server})")
            self._events.put(event)

    def start(self) -> None:
        """
        Start listening for the hotkey.

        Raises:
            HotkeyRegistrationError: If the listener cannot be started.
            EvdevPermissionError: On Wayland, if input devices are not
                accessible.
        """
        with self._lock:
            if self._running:
                logger.warning("HotkeyListener is already running")
                return

            self._stop_event.clear()

            try:
                if self._display_server == "wayland":
                    self._start_wayland()
                else:
                    self._start_x11()
            except (EvdevPermissionError, HotkeyRegistrationError):
                raise
            except Exception as e:
                raise HotkeyRegistrationError(
                    f"Failed to start hotkey listener: {e}"
                ) from e

            self._running = True
            logger.info(f"Listening for [{self.hotkey}] ({self._display_server})")

    def stop(self) -> None:
        """Stop listening. Safe to call multiple times."""
        with self._lock:
            if not self._running:
                return

            self._running = False
            self._stop_event.set()

            if self._display_server == "wayland":
                self._stop_wayland()
            else:
                self._stop_x11()

            logger.debug("HotkeyListener stopped")

    # =========================================================================
    # X11 Implementation (pynput)
    # =========================================================================

    def _start_x11(self) -> None:
        try:
            from pynput import keyboard
        except ImportError as e:
            raise HotkeyRegistrationError(
                "pynput is required for X11 hotkey support. "
                "Install with: pip install pynput"
            ) from e

        self._x11_target = pynput_key(self._key_id)

        def on_press(key):
            self._emit(self._x11_key_id(key), True)

        def on_release(key):
            self._emit(self._x11_key_id(key), False)

        self._x11_listener = keyboard.Listener(
            on_press=on_press,
            on_release=on_release
        )
        self._x11_listener.daemon = True
        self._x11_listener.start()
        logger.debug("X11 pynput listener started")

    def _x11_key_id(self, key) -> str:
        # pynput aliases (shift/shift_l, alt/alt_l) compare equal
        if key == self._x11_target:
            return self._key_id
        return str(key)

    def _stop_x11(self) -> None:
        if self._x11_listener is not None:
            try:
                self._x11_listener.stop()
            except Exception as e:
                logger.warning(f"Error stopping X11 listener: {e}")
            finally:
                self._x11_listener = None

    # =========================================================================
    # Wayland Implementation (evdev)
    # =========================================================================

    def _start_wayland(self) -> None:
        try:
            import evdev
        except ImportError as e:
            raise HotkeyRegistrationError(
                "evdev is required for Wayland hotkey support. "
                "Install with: pip install evdev"
            ) from e

        self._evdev_target = evdev_code(self._key_id)

        # Keep one device per name, preferring the one reporting our key
        seen_devices = {}
        try:
            for path in evdev.list_devices():
                try:
                    device = evdev.InputDevice(path)
                    keys = device.capabilities().get(evdev.ecodes.EV_KEY, [])
                except PermissionError:
                    continue
                except Exception as e:
                    logger.debug(f"Error accessing device {path}: {e}")
                    continue

                if self._evdev_target not in keys:
                    device.close()
                    continue

                if device.name in seen_devices:
                    device.close()
                    logger.debug(f"Skipping duplicate device: {device.name}")
                    continue

                seen_devices[device.name] = device
                logger.debug(f"Found keyboard device: {device.name}")
        except PermissionError as e:
            raise EvdevPermissionError(
                "No permission to read input devices. Add your user to the "
                "'input' group: sudo usermod -aG input $USER (re-login required)"
            ) from e

        devices = list(seen_devices.values())
        if not devices:
            raise HotkeyRegistrationError(
                "No keyboard devices found. Ensure you are in the 'input' group."
            )

        self._evdev_devices = devices

        self._thread = threading.Thread(
            target=self._evdev_event_loop,
            daemon=True,
            name="HotkeyListener-evdev"
        )
        self._thread.start()
        logger.debug(f"Wayland evdev listener started with {len(devices)} device(s)")

    def _stop_wayland(self) -> None:
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

        for device in self._evdev_devices:
            try:
                device.close()
            except Exception as e:
                logger.debug(f"Error closing device: {e}")

        self._evdev_devices = []

    def _evdev_event_loop(self) -> None:
        """Read key events from all keyboards until stopped."""
        import select

        import evdev

        logger.debug("evdev event loop started")

        while not self._stop_event.is_set():
            try:
                readable = select.select(self._evdev_devices, [], [], 0.1)[0]
            except Exception as e:
                if not self._stop_event.is_set():
                    logger.error(f"Error in evdev event loop: {e}")
                break

            for device in readable:
                try:
                    for event in device.read():
                        if event.type == evdev.ecodes.EV_KEY:
                            self._handle_evdev_key_event(event)
                except BlockingIOError:
                    continue
                except OSError as e:
                    logger.debug(f"Error reading device events: {e}")

        logger.debug("evdev event loop stopped")

    def _handle_evdev_key_event(self, event) -> None:
        key = self._key_id if event.code == self._evdev_target else str(event.code)
        if event.value in (_KEY_DOWN, _KEY_REPEAT):
            self._emit(key, True)
        elif event.value == _KEY_UP:
            self._emit(key, False)

    def __enter__(self) -> "HotkeyListener":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
