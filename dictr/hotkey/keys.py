"""
Hotkey names for dictr.

User-facing names (case-insensitive, several aliases each) map to one
canonical key id. Canonical ids are pynput ``Key`` attribute names, and each
one also has an evdev key code for the Wayland listener.
"""

from typing import Dict

from ..exceptions import HotkeyError

_ALIASES: Dict[str, tuple] = {
    "alt_gr": ("altgr", "alt_gr", "ralt"),
    "alt_l": ("alt", "lalt"),
    "ctrl_l": ("ctrl", "lctrl", "controlleft"),
    "ctrl_r": ("rctrl", "controlright"),
    "shift_l": ("shift", "lshift", "shiftleft"),
    "shift_r": ("rshift", "shiftright"),
    "cmd_l": ("super", "meta", "metaleft"),
    "caps_lock": ("capslock",),
    "space": ("space",),
    "esc": ("escape", "esc"),
}

KEY_NAMES: Dict[str, str] = {
    alias: key_id for key_id, aliases in _ALIASES.items() for alias in aliases
}
KEY_NAMES.update({f"f{n}": f"f{n}" for n in range(1, 13)})

EVDEV_KEY_NAMES: Dict[str, str] = {
    "alt_gr": "KEY_RIGHTALT",
    "alt_l": "KEY_LEFTALT",
    "ctrl_l": "KEY_LEFTCTRL",
    "ctrl_r": "KEY_RIGHTCTRL",
    "shift_l": "KEY_LEFTSHIFT",
    "shift_r": "KEY_RIGHTSHIFT",
    "cmd_l": "KEY_LEFTMETA",
    "caps_lock": "KEY_CAPSLOCK",
    "space": "KEY_SPACE",
    "esc": "KEY_ESC",
}
EVDEV_KEY_NAMES.update({f"f{n}": f"KEY_F{n}" for n in range(1, 13)})


def parse_key(name: str) -> str:
    """
    Map a hotkey name such as ``"AltGr"`` or ``"F9"`` to its canonical id.

    Raises:
        HotkeyError: If the name is not a supported hotkey.
    """
    key_id = KEY_NAMES.get(name.strip().lower()) if isinstance(name, str) else None
    if key_id is None:
        raise HotkeyError(f"unknown hotkey: {name}")
    return key_id


def pynput_key(key_id: str):
    """The pynput ``Key`` member for a canonical id."""
    from pynput import keyboard

    return getattr(keyboard.Key, key_id)


def evdev_code(key_id: str) -> int:
    """The evdev key code for a canonical id."""
    import evdev.ecodes as ec

    return getattr(ec, EVDEV_KEY_NAMES[key_id])
