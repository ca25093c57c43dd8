"""
Local speech-to-text for dictr using faster-whisper.

The model is a CTranslate2 model directory (as produced by
``ct2-transformers-converter`` or downloaded from the Systran repositories)
and is loaded once, when the backend is constructed.
"""

import logging
import os
import threading
from typing import Optional

import numpy as np

from ..audio.resample import CANONICAL_SAMPLE_RATE
from ..exceptions import ModelLoadError, TranscriptionFailedError
from .base import TranscribeBackend

logger = logging.getLogger(__name__)


class LocalWhisper(TranscribeBackend):
    """
    Whisper inference on the local machine.

    Decoding is greedy (one beam, one candidate, temperature 0) which keeps
    latency low for short dictation snippets.

    Example:
        >>> backend = LocalWhisper("~/.local/share/dictr/models/faster-whisper-base")
        >>> backend.transcribe(samples, language="en")
        'Hello world.'
    """

    def __init__(
        self,
        model_path: str,
        device: str = "cpu",
        compute_type: str = "int8"
    ) -> None:
        """
        Load the model.

        Args:
            model_path: Path to a faster-whisper model directory.
            device: Compute device, "cpu" or "cuda".
            compute_type: CTranslate2 compute type, e.g. "int8" or "float16".

        Raises:
            ModelLoadError: If the path does not exist or the model cannot
                be loaded.
        """
        self.model_path = os.path.expanduser(model_path)
        self.device = device
        self.compute_type = compute_type
        self._transcription_lock = threading.Lock()

        if not os.path.exists(self.model_path):
            raise ModelLoadError(f"Model not found: {self.model_path}")

        logger.info(f"Loading Whisper model from '{self.model_path}'...")

        try:
            from faster_whisper import WhisperModel

            self._model = WhisperModel(
                self.model_path,
                device=self.device,
                compute_type=self.compute_type
            )
        except Exception as e:
            error_msg = f"Failed to load Whisper model '{self.model_path}': {e}"
            logger.error(error_msg)
            raise ModelLoadError(error_msg) from e

        logger.info(f"Whisper model loaded (device={device}, compute_type={compute_type})")

    def transcribe(
        self,
        audio: np.ndarray,
        language: Optional[str] = None,
        initial_prompt: Optional[str] = None
    ) -> str:
        samples = np.asarray(audio, dtype=np.float32)
        if samples.size == 0:
            return ""

        with self._transcription_lock:
            try:
                segments, info = self._model.transcribe(
                    samples,
                    language=language,
                    initial_prompt=initial_prompt,
                    beam_size=1,
                    best_of=1,
                    temperature=0.0,
                    vad_filter=False,
                )

                # segments is a generator; inference happens while iterating
                text_segments = []
                for segment in segments:
                    logger.debug(f"Segment: {segment.text!r}")
                    text_segments.append(segment.text.strip())
            except Exception as e:
                logger.error(f"Transcription failed: {e}")
                raise TranscriptionFailedError(f"Transcription failed: {e}") from e

        text = " ".join(text_segments).strip()
        logger.info(
            f"Transcription complete (language={language or info.language}, "
            f"duration={samples.size / CANONICAL_SAMPLE_RATE:.2f}s, text_length={len(text)} chars)"
        )
        return text
