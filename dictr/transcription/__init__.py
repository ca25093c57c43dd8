"""
Speech-to-text backends for dictr.

Usage:
    from dictr.transcription import create_backend

    backend = create_backend(config)
    text = backend.transcribe(samples, language="en")

Backends:
    - local: faster-whisper model on this machine
    - api: OpenAI-compatible HTTP endpoint ("remote" is accepted as an alias)
"""

from typing import Any, Dict

from ..exceptions import ConfigurationError
from .base import TranscribeBackend
from .remote import encode_wav

BACKEND_NAMES = ("local", "api", "remote")


def create_backend(config: Dict[str, Any]) -> TranscribeBackend:
    """
    Build the backend named by ``config["backend"]``.

    Raises:
        ConfigurationError: For an unknown backend name or a missing API key.
        ModelLoadError: If the local model cannot be loaded.
    """
    name = str(config.get("backend", "local")).lower()

    if name == "local":
        from .whisper import LocalWhisper

        return LocalWhisper(
            config["model_path"],
            device=config.get("compute_device", "cpu"),
            compute_type=config.get("compute_type", "int8"),
        )
    elif name in ("api", "remote"):
        from .remote import DEFAULT_API_TIMEOUT, DEFAULT_API_URL, RemoteWhisper

        return RemoteWhisper(
            config.get("api_key", ""),
            api_url=config.get("api_url") or DEFAULT_API_URL,
            timeout=config.get("api_timeout", DEFAULT_API_TIMEOUT),
        )

    raise ConfigurationError(
        f"Unknown backend '{name}'. Valid options: local, api"
    )


__all__ = ["BACKEND_NAMES", "TranscribeBackend", "create_backend", "encode_wav"]
