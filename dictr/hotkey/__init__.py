"""Push-to-talk hotkey handling."""

from .keys import parse_key
from .manager import (
    DEFAULT_HOTKEY,
    HotkeyEdgeDetector,
    HotkeyEvent,
    HotkeyListener,
)

__all__ = [
    "DEFAULT_HOTKEY",
    "HotkeyEdgeDetector",
    "HotkeyEvent",
    "HotkeyListener",
    "parse_key",
]
