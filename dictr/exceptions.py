"""
Custom exceptions for dictr.

Setup failures (device, model, credentials, configuration) abort the process
before the main loop starts; everything raised during a recording cycle is
reported and the cycle returns to idle.
"""


class DictrError(Exception):
    """Base exception for all dictr errors."""
    pass


# Audio Exceptions
class AudioError(DictrError):
    """Base exception for audio-related errors."""
    pass


class AudioDeviceError(AudioError):
    """Raised when there's an issue with audio devices."""
    pass


class NoAudioDeviceError(AudioDeviceError):
    """Raised when no audio input device is available."""
    pass


class DeviceNotFoundError(AudioDeviceError):
    """Raised when a requested input device matches nothing."""

    def __init__(self, hint: str) -> None:
        super().__init__(f"input device '{hint}' not found")
        self.hint = hint


class AudioRecordingError(AudioError):
    """Raised when audio recording fails."""
    pass


class ResampleError(AudioError):
    """Raised when sample-rate conversion fails."""
    pass


class ResamplerConfigError(ResampleError):
    """Raised when a resampler cannot be built for the requested rates."""
    pass


# Transcription Exceptions
class TranscriptionError(DictrError):
    """Base exception for transcription-related errors."""
    pass


class ModelLoadError(TranscriptionError):
    """Raised when the Whisper model fails to load."""
    pass


class TranscriptionFailedError(TranscriptionError):
    """Raised when transcription of audio fails."""
    pass


# Input Exceptions
class InputError(DictrError):
    """Base exception for text input-related errors."""
    pass


class InputSimulationError(InputError):
    """Raised when keyboard input simulation fails."""
    pass


class YdotoolNotAvailableError(InputError):
    """Raised when ydotool is not available on Wayland."""
    pass


# Hotkey Exceptions
class HotkeyError(DictrError):
    """Base exception for hotkey-related errors."""
    pass


class HotkeyRegistrationError(HotkeyError):
    """Raised when the global hotkey listener cannot be started."""
    pass


class EvdevPermissionError(HotkeyError):
    """Raised when user lacks permissions for evdev (not in 'input' group)."""
    pass


# Configuration Exceptions
class ConfigurationError(DictrError):
    """Raised when configuration loading fails or is incomplete."""
    pass
