"""
Sample-rate conversion for captured audio.

Whisper models expect 16 kHz mono input while most microphones run at 44.1
or 48 kHz. Conversion is done in fixed-size blocks with an FFT resampler so
memory stays bounded and every block is converted the same way.
"""

import logging
from fractions import Fraction
from typing import Sequence, Union

import numpy as np
from scipy import signal as scipy_signal

from ..exceptions import ResampleError, ResamplerConfigError

logger = logging.getLogger(__name__)

# Whisper expects 16 kHz audio
CANONICAL_SAMPLE_RATE = 16000

DEFAULT_WINDOW_SIZE = 1024

AudioInput = Union[np.ndarray, Sequence[float]]


class Resampler:
    """
    Windowed FFT resampler from one fixed rate to another.

    Input is cut into consecutive blocks of about ``window_size`` samples,
    rounded up so every block starts on the exact target sample grid. Each
    block is converted together with a margin of its neighbours on both sides
    and the margin is trimmed from the result, so the joins between blocks
    stay continuous. Zero padding is only added before the first sample and
    after the last one. The output holds ``floor(len(input) * target_rate /
    source_rate)`` samples.

    Samples are not clipped or rescaled.

    Example:
        >>> resampler = Resampler(48000, 16000)
        >>> out = resampler.process(np.zeros(3072, dtype=np.float32))
        >>> len(out)
        1024
    """

    def __init__(
        self,
        source_rate: int,
        target_rate: int,
        window_size: int = DEFAULT_WINDOW_SIZE
    ) -> None:
        """
        Build a resampler for a fixed rate pair.

        Args:
            source_rate: Sample rate of the input in Hz.
            target_rate: Desired output sample rate in Hz.
            window_size: Nominal number of input samples per conversion block.

        Raises:
            ResamplerConfigError: If a rate or the window size is not a
                positive integer, or the ratio is so small that a window
                would produce no output.
        """
        for label, value in (
            ("source_rate", source_rate),
            ("target_rate", target_rate),
            ("window_size", window_size),
        ):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise ResamplerConfigError(
                    f"{label} must be a positive integer, got {value!r}"
                )

        self.source_rate = int(source_rate)
        self.target_rate = int(target_rate)
        self.window_size = int(window_size)
        self._ratio = Fraction(self.target_rate, self.source_rate)

        if self.window_size * self._ratio < 1:
            raise ResamplerConfigError(
                f"Unsupported ratio {self.source_rate}Hz -> {self.target_rate}Hz "
                f"for a window of {self.window_size} samples"
            )

        # Block and margin sizes are multiples of the ratio denominator so
        # they map to a whole number of output samples
        step = self._ratio.denominator
        self._block = -(-self.window_size // step) * step
        self._margin = -(-self.window_size // (2 * step)) * step
        self._block_output = int(self._block * self._ratio)
        self._margin_output = int(self._margin * self._ratio)

    @property
    def ratio(self) -> float:
        return float(self._ratio)

    def process(self, samples: AudioInput) -> np.ndarray:
        """
        Resample a complete mono signal.

        Args:
            samples: One-dimensional float samples at ``source_rate``.

        Returns:
            float32 array at ``target_rate``. Empty input gives an empty array.

        Raises:
            ResampleError: If the input is not one-dimensional or any block
                fails to convert. No partial output is returned.
        """
        audio = np.asarray(samples, dtype=np.float32)
        if audio.ndim != 1:
            raise ResampleError(f"Expected mono samples, got shape {audio.shape}")

        if audio.size == 0:
            return np.zeros(0, dtype=np.float32)

        block = self._block
        margin = self._margin
        blocks = -(-audio.size // block)
        total_output = int(audio.size * self._ratio)

        padded = np.zeros(blocks * block + 2 * margin, dtype=np.float32)
        padded[margin:margin + audio.size] = audio

        segment_output = self._block_output + 2 * self._margin_output
        keep = slice(self._margin_output, self._margin_output + self._block_output)
        chunks = []

        try:
            for i in range(blocks):
                start = i * block
                segment = padded[start:start + block + 2 * margin]
                chunks.append(self._convert(segment, segment_output)[keep])
        except ResampleError:
            raise
        except Exception as e:
            raise ResampleError(
                f"Resampling {self.source_rate}Hz -> {self.target_rate}Hz failed: {e}"
            ) from e

        output = np.concatenate(chunks)[:total_output]
        logger.debug(
            f"Resampled {audio.size} samples at {self.source_rate}Hz "
            f"to {output.size} samples at {self.target_rate}Hz"
        )
        return output.astype(np.float32, copy=False)

    @staticmethod
    def _convert(segment: np.ndarray, n_out: int) -> np.ndarray:
        converted = scipy_signal.resample(segment, n_out)
        if not np.all(np.isfinite(converted)):
            raise ResampleError("Resampler produced non-finite samples")
        return np.asarray(converted, dtype=np.float32)


def resample(
    samples: AudioInput,
    source_rate: int,
    target_rate: int = CANONICAL_SAMPLE_RATE,
    window_size: int = DEFAULT_WINDOW_SIZE
) -> np.ndarray:
    """
    Convert mono samples from ``source_rate`` to ``target_rate``.

    Equal rates return the input unchanged and empty input returns an empty
    array, so callers do not need to special-case either.

    Raises:
        ResamplerConfigError: If the rate pair is unsupported.
        ResampleError: If conversion fails.
    """
    audio = np.asarray(samples, dtype=np.float32)
    if audio.size == 0:
        return np.zeros(0, dtype=np.float32)
    if source_rate == target_rate:
        return audio

    return Resampler(source_rate, target_rate, window_size).process(audio)
