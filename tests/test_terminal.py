"""
Tests for TerminalInput.

External tools are never executed: subprocess.run, shutil.which and the
pynput controller are mocked.
"""

import subprocess
import types
from unittest.mock import MagicMock, call, patch

import pytest

from dictr.exceptions import InputSimulationError, YdotoolNotAvailableError
from dictr.input import TerminalInput


def completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout="", stderr=stderr)


@pytest.fixture
def x11(monkeypatch):
    monkeypatch.setenv("XDG_SESSION_TYPE", "x11")
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)


@pytest.fixture
def wayland(monkeypatch):
    monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")


@pytest.fixture
def fake_pynput():
    controller = MagicMock()
    keyboard = types.ModuleType("pynput.keyboard")
    keyboard.Controller = MagicMock(return_value=controller)
    keyboard.Key = types.SimpleNamespace(shift="shift", insert="insert", enter="enter")
    pynput = types.ModuleType("pynput")
    pynput.keyboard = keyboard
    with patch.dict("sys.modules", {"pynput": pynput, "pynput.keyboard": keyboard}):
        yield controller


class TestTerminalInputX11:
    """Tests for the X11 backend."""

    def test_type_text(self, x11, fake_pynput):
        """Test text is typed character by character."""
        output = TerminalInput(delay_ms=0)

        output.send("hi!")

        assert fake_pynput.type.call_args_list == [call("h"), call("i"), call("!")]

    def test_empty_text_not_typed(self, x11, fake_pynput):
        """Test empty text does nothing."""
        TerminalInput(delay_ms=0).type_text("")
        fake_pynput.type.assert_not_called()

    def test_typing_failure(self, x11, fake_pynput):
        """Test controller errors become InputSimulationError."""
        fake_pynput.type.side_effect = RuntimeError("no display")

        with pytest.raises(InputSimulationError):
            TerminalInput(delay_ms=0).type_text("x")

    def test_paste_writes_both_selections(self, x11, fake_pynput):
        """Test paste fills clipboard and primary, then sends shift+Insert."""
        with patch("dictr.input.terminal.shutil.which", return_value="/usr/bin/xclip"):
            output = TerminalInput(paste=True)

        with patch("dictr.input.terminal.subprocess.run", return_value=completed()) as run:
            output.send("git status")

        commands = [c.args[0] for c in run.call_args_list]
        assert commands == [
            ["xclip", "-selection", "clipboard"],
            ["xclip", "-selection", "primary"],
        ]
        assert all(c.kwargs["input"] == "git status" for c in run.call_args_list)
        fake_pynput.pressed.assert_called_once_with("shift")
        fake_pynput.press.assert_called_once_with("insert")

    def test_paste_requires_xclip(self, x11):
        """Test paste mode fails early without xclip."""
        with patch("dictr.input.terminal.shutil.which", return_value=None):
            with pytest.raises(InputSimulationError, match="xclip"):
                TerminalInput(paste=True)

    def test_clipboard_failure(self, x11, fake_pynput):
        """Test a failing xclip is reported."""
        with patch("dictr.input.terminal.shutil.which", return_value="/usr/bin/xclip"):
            output = TerminalInput(paste=True)

        with patch("dictr.input.terminal.subprocess.run", return_value=completed(1, "no display")):
            with pytest.raises(InputSimulationError, match="no display"):
                output.paste_text("x")
        fake_pynput.press.assert_not_called()

    def test_negative_delay(self, x11):
        """Test a negative delay is rejected."""
        with pytest.raises(ValueError):
            TerminalInput(delay_ms=-1)


class TestTerminalInputWayland:
    """Tests for the ydotool backend."""

    @pytest.fixture
    def ydotool(self):
        with patch("dictr.input.terminal.shutil.which", return_value="/usr/bin/ydotool"), \
                patch("dictr.input.terminal.subprocess.run", return_value=completed()) as run:
            yield run

    def test_type_text(self, wayland, ydotool):
        """Test ydotool types with the configured key delay."""
        output = TerminalInput(delay_ms=5)

        output.send("hello")

        assert ydotool.call_args.args[0] == ["ydotool", "type", "--key-delay", "5", "--", "hello"]

    def test_paste(self, wayland, ydotool):
        """Test wl-copy fills both selections before shift+Insert."""
        output = TerminalInput(paste=True)
        ydotool.reset_mock()

        output.send("hello")

        commands = [c.args[0] for c in ydotool.call_args_list]
        assert commands == [
            ["wl-copy"],
            ["wl-copy", "--primary"],
            ["ydotool", "key", "42:1", "110:1", "110:0", "42:0"],
        ]

    def test_ydotool_missing(self, wayland):
        """Test construction fails without ydotool."""
        with patch("dictr.input.terminal.shutil.which", return_value=None):
            with pytest.raises(YdotoolNotAvailableError):
                TerminalInput()

    def test_daemon_not_running(self, wayland):
        """Test construction fails when ydotoold does not respond."""
        with patch("dictr.input.terminal.shutil.which", return_value="/usr/bin/ydotool"), \
                patch("dictr.input.terminal.subprocess.run", return_value=completed(1, "socket")):
            with pytest.raises(YdotoolNotAvailableError, match="ydotoold"):
                TerminalInput()

    def test_ydotool_failure(self, wayland, ydotool):
        """Test a failing ydotool run is reported."""
        output = TerminalInput()
        ydotool.return_value = completed(1, "permission denied")

        with pytest.raises(YdotoolNotAvailableError, match="permission denied"):
            output.type_text("x")
