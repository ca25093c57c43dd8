"""
Shared fixtures for dictr tests.

sounddevice needs PortAudio at import time, so tests install a fake
``sounddevice`` module instead of touching real audio hardware. pactl is
disabled by default so host audio servers never leak into results.
"""

import types
from unittest.mock import MagicMock, patch

import pytest

MIC_48K = {
    "name": "USB Mic",
    "max_input_channels": 2,
    "max_output_channels": 0,
    "default_samplerate": 48000.0,
}
SPEAKERS = {
    "name": "Speakers",
    "max_input_channels": 0,
    "max_output_channels": 2,
    "default_samplerate": 48000.0,
}


def make_sounddevice(devices, default_index=0):
    """Build a fake sounddevice module exposing ``devices``."""
    module = types.ModuleType("sounddevice")
    module.PortAudioError = type("PortAudioError", (Exception,), {})

    def query_devices(device=None, kind=None):
        if kind == "input":
            if default_index is None:
                raise module.PortAudioError("Error querying device -1")
            info = dict(devices[default_index])
            info["index"] = default_index
            return info
        return [dict(d) for d in devices]

    module.query_devices = MagicMock(side_effect=query_devices)
    module.InputStream = MagicMock()
    return module


@pytest.fixture
def fake_sd():
    """A fake sounddevice with one 48 kHz stereo mic (the default) and speakers."""
    module = make_sounddevice([MIC_48K, SPEAKERS], default_index=0)
    with patch.dict("sys.modules", {"sounddevice": module}):
        yield module


@pytest.fixture(autouse=True)
def no_pactl():
    with patch("dictr.audio.devices._run_pactl", return_value=None) as mock_pactl:
        yield mock_pactl
