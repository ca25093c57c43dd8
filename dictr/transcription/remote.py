"""
Remote speech-to-text for dictr.

Audio is uploaded as a WAV file to an OpenAI-compatible
``/v1/audio/transcriptions`` endpoint.
"""

import io
import logging
from typing import Optional

import numpy as np
import requests
import soundfile as sf

from ..audio.resample import CANONICAL_SAMPLE_RATE
from ..exceptions import ConfigurationError, TranscriptionFailedError
from .base import TranscribeBackend

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/audio/transcriptions"
DEFAULT_API_MODEL = "whisper-1"
DEFAULT_API_TIMEOUT = 120.0


def encode_wav(audio: np.ndarray, sample_rate: int = CANONICAL_SAMPLE_RATE) -> bytes:
    """
    Encode float samples as a 16-bit PCM mono WAV file.

    Samples are scaled by 32767 and clamped to the int16 range.
    """
    samples = np.asarray(audio, dtype=np.float32).reshape(-1)
    pcm = np.clip(samples * 32767.0, -32768, 32767).astype(np.int16)

    buffer = io.BytesIO()
    sf.write(buffer, pcm, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class RemoteWhisper(TranscribeBackend):
    """
    Transcription through an OpenAI-compatible HTTP API.

    Example:
        >>> backend = RemoteWhisper(api_key="sk-...")
        >>> backend.transcribe(samples)
        'Hello world.'
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_API_MODEL,
        timeout: Optional[float] = DEFAULT_API_TIMEOUT
    ) -> None:
        """
        Args:
            api_key: Bearer token for the endpoint.
            api_url: Full URL of the transcription endpoint.
            model: Model name sent with each request.
            timeout: Request timeout in seconds, None to wait indefinitely.

        Raises:
            ConfigurationError: If no API key is given.
        """
        if not api_key:
            raise ConfigurationError(
                "API key required for the api backend "
                "(set api_key in the config file or OPENAI_API_KEY)"
            )

        self.api_url = api_url
        self.model = model
        self.timeout = timeout

        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {api_key}"

        logger.info(f"Remote transcription via {api_url} (model={model})")

    def transcribe(
        self,
        audio: np.ndarray,
        language: Optional[str] = None,
        initial_prompt: Optional[str] = None
    ) -> str:
        wav = encode_wav(audio)

        data = {"model": self.model}
        if language:
            data["language"] = language
        if initial_prompt:
            data["prompt"] = initial_prompt

        logger.debug(f"Uploading {len(wav)} bytes to {self.api_url}")

        try:
            response = self._session.post(
                self.api_url,
                files={"file": ("audio.wav", wav, "audio/wav")},
                data=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise TranscriptionFailedError(f"API request failed: {e}") from e
        except ValueError as e:
            raise TranscriptionFailedError(f"Invalid API response: {e}") from e

        if not isinstance(payload, dict):
            raise TranscriptionFailedError(f"Invalid API response: {payload!r}")

        text = payload.get("text") or ""
        if not isinstance(text, str):
            raise TranscriptionFailedError(f"Invalid transcript in API response: {text!r}")
        return text.strip()

    def close(self) -> None:
        self._session.close()
