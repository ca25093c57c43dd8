"""
Audio module for dictr.

Provides microphone capture, input device lookup and resampling to the
16 kHz rate the transcription backends expect.
"""

from .devices import InputDevice, SourceInfo, list_input_devices, resolve_input_device
from .recorder import AudioRecorder
from .resample import CANONICAL_SAMPLE_RATE, Resampler, resample

__all__ = [
    'AudioRecorder',
    'InputDevice',
    'SourceInfo',
    'list_input_devices',
    'resolve_input_device',
    'Resampler',
    'resample',
    'CANONICAL_SAMPLE_RATE',
]
