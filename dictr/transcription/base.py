"""
Speech-to-text backend interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class TranscribeBackend(ABC):
    """
    Converts 16 kHz mono float32 samples to text.

    Implementations are called synchronously from the orchestrator loop,
    one request at a time.
    """

    @abstractmethod
    def transcribe(
        self,
        audio: np.ndarray,
        language: Optional[str] = None,
        initial_prompt: Optional[str] = None
    ) -> str:
        """
        Transcribe one utterance.

        Args:
            audio: float32 mono samples at 16 kHz.
            language: Language code, or None for auto-detection.
            initial_prompt: Optional text biasing the decoder.

        Returns:
            The transcribed text. An empty string means no speech.

        Raises:
            TranscriptionError: If transcription fails.
        """
