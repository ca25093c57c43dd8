"""
Tests for input device enumeration and resolution.

pactl output is faked through ``_run_pactl``; sounddevice through the
``fake_sd`` fixture.
"""

import os
import subprocess
from unittest.mock import patch

import pytest

from dictr.audio.devices import (
    InputDevice,
    SourceInfo,
    list_input_devices,
    query_pactl_sources,
    resolve_input_device,
)
from dictr.exceptions import DeviceNotFoundError, NoAudioDeviceError

from .conftest import MIC_48K, SPEAKERS, make_sounddevice

PACTL_SOURCES = """\
Source #45
\tState: SUSPENDED
\tName: alsa_output.pci-0000_00_1f.3.analog-stereo.monitor
\tDescription: Monitor of Built-in Audio Analog Stereo
Source #46
\tState: RUNNING
\tName: alsa_input.pci-0000_00_1f.3.analog-stereo
\tDescription: Built-in Audio Analog Stereo
Source #52
\tState: SUSPENDED
\tName: alsa_input.usb-Blue_Yeti-00.analog-stereo
\tDescription: Yeti Stereo Microphone Analog Stereo
"""


def pactl(default="alsa_input.pci-0000_00_1f.3.analog-stereo", listing=PACTL_SOURCES):
    """Fake for _run_pactl answering get-default-source and list sources."""

    def run(*args):
        if args == ("get-default-source",):
            return subprocess.CompletedProcess(args, 0, stdout=default + "\n", stderr="")
        if args == ("list", "sources"):
            return subprocess.CompletedProcess(args, 0, stdout=listing, stderr="")
        return None

    return run


class TestSourceInfo:
    """Tests for the listing entry."""

    def test_str_marks_default(self):
        """Test the default entry carries a marker."""
        assert str(SourceInfo("a", "Mic", is_default=True)) == "Mic (default)"
        assert str(SourceInfo("a", "Mic")) == "Mic"


class TestPactlSources:
    """Tests for pactl parsing."""

    def test_monitors_skipped_and_default_marked(self, no_pactl):
        """Test monitor sources are dropped and the default is flagged."""
        no_pactl.side_effect = pactl()

        sources = query_pactl_sources()

        assert [s.description for s in sources] == [
            "Built-in Audio Analog Stereo",
            "Yeti Stereo Microphone Analog Stereo",
        ]
        assert [s.is_default for s in sources] == [True, False]

    def test_pactl_missing(self, no_pactl):
        """Test None is returned when pactl cannot run."""
        assert query_pactl_sources() is None

    def test_pactl_failure(self, no_pactl):
        """Test a non-zero exit status means no pactl listing."""
        no_pactl.side_effect = lambda *args: subprocess.CompletedProcess(args, 1, "", "error")
        assert query_pactl_sources() is None

    def test_at_most_one_default(self, no_pactl):
        """Test duplicate names never yield two default entries."""
        listing = PACTL_SOURCES + (
            "Source #60\n"
            "\tName: alsa_input.pci-0000_00_1f.3.analog-stereo\n"
            "\tDescription: Duplicate\n"
        )
        no_pactl.side_effect = pactl(listing=listing)

        sources = query_pactl_sources()

        assert sum(s.is_default for s in sources) == 1


class TestListInputDevices:
    """Tests for the combined listing."""

    def test_prefers_pactl(self, no_pactl, fake_sd):
        """Test pactl sources are listed when available."""
        no_pactl.side_effect = pactl()

        devices = list_input_devices()

        assert len(devices) == 2
        fake_sd.query_devices.assert_not_called()

    def test_sounddevice_fallback(self, fake_sd):
        """Test sounddevice input devices are listed without pactl."""
        devices = list_input_devices()

        assert devices == [SourceInfo("USB Mic", "USB Mic", True)]

    def test_sounddevice_without_default(self):
        """Test no entry is marked default when there is none."""
        module = make_sounddevice([MIC_48K, SPEAKERS, dict(MIC_48K, name="Other")], default_index=None)
        with patch.dict("sys.modules", {"sounddevice": module}):
            devices = list_input_devices()

        assert [d.name for d in devices] == ["USB Mic", "Other"]
        assert not any(d.is_default for d in devices)


class TestResolveInputDevice:
    """Tests for device hint resolution."""

    def test_default_device(self, fake_sd):
        """Test no hint resolves to the default input."""
        device = resolve_input_device()

        assert device == InputDevice(index=None, channels=2, sample_rate=48000, label="USB Mic")

    def test_default_uses_pactl_description(self, no_pactl, fake_sd):
        """Test the default device label comes from pactl when possible."""
        no_pactl.side_effect = pactl()

        device = resolve_input_device()

        assert device.label == "Built-in Audio Analog Stereo"

    def test_numeric_hint_indexes_pactl_list(self, no_pactl, fake_sd):
        """Test a number selects a pactl source and routes PipeWire to it."""
        no_pactl.side_effect = pactl()

        with patch.dict(os.environ, {}, clear=False):
            device = resolve_input_device("1")
            assert os.environ["PIPEWIRE_NODE"] == "alsa_input.usb-Blue_Yeti-00.analog-stereo"

        assert device.label == "Yeti Stereo Microphone Analog Stereo"
        assert device.index is None

    def test_substring_hint(self, no_pactl, fake_sd):
        """Test a case-insensitive description fragment matches."""
        no_pactl.side_effect = pactl()

        with patch.dict(os.environ, {}, clear=False):
            device = resolve_input_device("yeti")

        assert device.label == "Yeti Stereo Microphone Analog Stereo"

    def test_sounddevice_name_fallback(self, fake_sd):
        """Test an exact sounddevice name is used when pactl has no match."""
        device = resolve_input_device("USB Mic")

        assert device.index == 0
        assert device.sample_rate == 48000

    def test_output_only_device_not_matched(self, fake_sd):
        """Test output devices are never chosen for capture."""
        with pytest.raises(DeviceNotFoundError):
            resolve_input_device("Speakers")

    def test_unknown_hint(self, no_pactl, fake_sd):
        """Test the error names the requested hint."""
        no_pactl.side_effect = pactl()

        with pytest.raises(DeviceNotFoundError, match="nonexistent") as exc_info:
            resolve_input_device("nonexistent")

        assert exc_info.value.hint == "nonexistent"

    @pytest.mark.parametrize("hint", ["\u00b2", "\u0663"])
    def test_non_ascii_digits_are_names(self, no_pactl, fake_sd, hint):
        """Test digit-like Unicode hints are matched as names, not indexes."""
        no_pactl.side_effect = pactl()

        with pytest.raises(DeviceNotFoundError):
            resolve_input_device(hint)

    def test_channels_capped(self):
        """Test virtual devices with many channels are opened in stereo."""
        module = make_sounddevice([dict(MIC_48K, max_input_channels=64)])
        with patch.dict("sys.modules", {"sounddevice": module}):
            device = resolve_input_device()

        assert device.channels == 2

    def test_no_input_device(self):
        """Test a missing default input is a setup failure."""
        module = make_sounddevice([SPEAKERS], default_index=None)
        with patch.dict("sys.modules", {"sounddevice": module}):
            with pytest.raises(NoAudioDeviceError):
                resolve_input_device()
