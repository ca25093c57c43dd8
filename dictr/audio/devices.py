"""
Audio input device lookup for dictr.

Sources are listed through PipeWire/PulseAudio (``pactl``) when available,
since those names and descriptions are what users see in their desktop
settings. sounddevice (PortAudio) is the fallback and is always what the
capture stream is opened with.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..exceptions import AudioDeviceError, DeviceNotFoundError, NoAudioDeviceError

logger = logging.getLogger(__name__)

# Most desktop stacks expose a virtual "default" device with dozens of
# channels; anything above stereo is averaged away anyway.
MAX_CAPTURE_CHANNELS = 2


@dataclass(frozen=True)
class InputDevice:
    """A resolved capture device. ``index`` is None for the system default."""
    index: Optional[int]
    channels: int
    sample_rate: int
    label: str

    def __str__(self) -> str:
        return f"{self.label} ({self.sample_rate}Hz, {self.channels}ch)"


@dataclass(frozen=True)
class SourceInfo:
    """One entry of the input device listing."""
    name: str
    description: str
    is_default: bool = False

    def __str__(self) -> str:
        default_marker = " (default)" if self.is_default else ""
        return f"{self.description}{default_marker}"


def _run_pactl(*args: str) -> Optional[subprocess.CompletedProcess]:
    env = dict(os.environ, LC_ALL="C")
    try:
        return subprocess.run(
            ["pactl", *args],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
            env=env,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"pactl {' '.join(args)} unavailable: {e}")
        return None


def query_pactl_sources() -> Optional[List[SourceInfo]]:
    """
    List PipeWire/PulseAudio capture sources via ``pactl``.

    Monitor sources (loopbacks of outputs) are skipped.

    Returns:
        The sources in pactl order, or None if pactl is missing or fails.
    """
    default_result = _run_pactl("get-default-source")
    default_name = ""
    if default_result is not None and default_result.returncode == 0:
        default_name = default_result.stdout.strip()

    result = _run_pactl("list", "sources")
    if result is None or result.returncode != 0:
        return None

    sources: List[SourceInfo] = []
    default_seen = False
    current_name: Optional[str] = None

    for line in result.stdout.splitlines():
        stripped = line.strip()
        if stripped.startswith("Name: "):
            current_name = stripped[len("Name: "):]
        elif stripped.startswith("Description: ") and current_name is not None:
            name, current_name = current_name, None
            if ".monitor" in name:
                continue
            is_default = bool(default_name) and name == default_name and not default_seen
            default_seen = default_seen or is_default
            sources.append(SourceInfo(name, stripped[len("Description: "):], is_default))

    return sources


def default_source_description() -> Optional[str]:
    """Description of the current default pactl source, if any."""
    for source in query_pactl_sources() or []:
        if source.is_default:
            return source.description
    return None


def _query_sounddevice_inputs() -> List[SourceInfo]:
    import sounddevice as sd

    try:
        devices = sd.query_devices()
    except sd.PortAudioError as e:
        raise AudioDeviceError(f"Failed to query audio devices: {e}") from e

    default_index = _default_input_index(sd)
    result = []
    for idx, device in enumerate(devices):
        if device.get("max_input_channels", 0) > 0:
            name = device.get("name", f"Device {idx}")
            result.append(SourceInfo(name, name, idx == default_index))
    return result


def _default_input_index(sd: Any) -> Optional[int]:
    try:
        default_input = sd.query_devices(kind="input")
    except sd.PortAudioError:
        return None
    if isinstance(default_input, Mapping):
        return default_input.get("index")
    return None


def list_input_devices() -> List[SourceInfo]:
    """
    List available capture sources, marking at most one as the default.

    pactl sources are preferred; sounddevice input devices are used when
    pactl is unavailable or reports nothing.

    Raises:
        AudioDeviceError: If the sounddevice fallback cannot query devices.
    """
    sources = query_pactl_sources()
    if sources:
        return sources

    devices = _query_sounddevice_inputs()
    logger.info(f"Found {len(devices)} audio input device(s)")
    return devices


def _match_source(sources: List[SourceInfo], hint: str) -> Optional[SourceInfo]:
    if hint.isascii() and hint.isdigit():
        idx = int(hint)
        return sources[idx] if idx < len(sources) else None

    hint_lower = hint.lower()
    for source in sources:
        if source.name == hint or hint_lower in source.description.lower():
            return source
    return None


def _describe(index: Optional[int], info: Mapping[str, Any], label: str) -> InputDevice:
    channels = max(1, min(int(info.get("max_input_channels", 1)), MAX_CAPTURE_CHANNELS))
    sample_rate = int(info.get("default_samplerate", 44100))
    return InputDevice(index=index, channels=channels, sample_rate=sample_rate, label=label)


def _default_input_info(sd: Any) -> Mapping[str, Any]:
    try:
        info = sd.query_devices(kind="input")
    except sd.PortAudioError as e:
        raise NoAudioDeviceError(f"no input device found: {e}") from e
    if not info or info.get("max_input_channels", 0) < 1:
        raise NoAudioDeviceError("no input device found")
    return info


def resolve_input_device(hint: Optional[str] = None) -> InputDevice:
    """
    Resolve a device hint to a capture device.

    Resolution order for a hint:
        1. a number indexes the pactl source list
        2. exact pactl source name, or case-insensitive substring of its
           description
        3. exact sounddevice device name

    A pactl match routes the default PortAudio device to that source by
    setting ``PIPEWIRE_NODE``.

    Args:
        hint: Device index, name or description fragment, or None for the
            system default input.

    Returns:
        The resolved InputDevice.

    Raises:
        DeviceNotFoundError: If the hint matches nothing.
        NoAudioDeviceError: If there is no default input device.
    """
    import sounddevice as sd

    if hint is None:
        info = _default_input_info(sd)
        label = default_source_description() or info.get("name", "unknown")
        return _describe(None, info, label)

    sources = query_pactl_sources()
    match = _match_source(sources, hint) if sources else None
    if match is not None:
        os.environ["PIPEWIRE_NODE"] = match.name
        logger.debug(f"Routing default input to pactl source {match.name}")
        info = _default_input_info(sd)
        return _describe(None, info, match.description)

    try:
        devices = sd.query_devices()
    except sd.PortAudioError as e:
        raise AudioDeviceError(f"failed to enumerate input devices: {e}") from e

    for idx, device in enumerate(devices):
        if device.get("max_input_channels", 0) > 0 and device.get("name") == hint:
            return _describe(idx, device, device["name"])

    raise DeviceNotFoundError(hint)
