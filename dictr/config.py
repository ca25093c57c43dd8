"""
Configuration for dictr.

Settings are read from ``$XDG_CONFIG_HOME/dictr/config.json`` (default
``~/.config/dictr/config.json``), deep-merged over DEFAULT_CONFIG, and then
overridden by command-line flags. A missing file means all defaults.

Example config.json:
    {
      "hotkey": "F9",
      "backend": "api",
      "language": "en",
      "replacements": {"slash ": "/", "new line": "\\n"}
    }
"""

import argparse
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "hotkey": "AltGr",
    "backend": "local",
    "model_path": "~/.local/share/dictr/models/faster-whisper-base",
    "compute_device": "cpu",
    "compute_type": "int8",
    "api_key": "",
    "api_url": "https://api.openai.com/v1/audio/transcriptions",
    "api_timeout": 120.0,
    "typing_delay_ms": 2,
    "min_duration_ms": 300,
    "device": None,
    "language": None,
    "initial_prompt": None,
    "paste": False,
    "replacements": {
        "lowercase_after": True,
    },
}

# CLI destination -> config key, for flags that take a value
_CLI_OVERRIDES = {
    "backend": "backend",
    "model": "model_path",
    "hotkey": "hotkey",
    "device": "device",
    "language": "language",
    "api_url": "api_url",
    "initial_prompt": "initial_prompt",
    "min_duration": "min_duration_ms",
}


def config_dir() -> Path:
    """Directory holding dictr's configuration."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "dictr"
    return Path.home() / ".config" / "dictr"


def config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


def merge_config(default: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge loaded configuration with defaults.

    Values from the loaded config override defaults. For nested
    dictionaries, merging is performed recursively.
    """
    result = copy.deepcopy(default)

    for key, value in loaded.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value

    return result


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file and merge it with the defaults.

    Args:
        path: Config file to read. Defaults to ``config_path()``.

    Returns:
        The merged configuration. Environment fallbacks are not applied yet;
        see ``resolve_env``.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    path = Path(path) if path is not None else config_path()

    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    if not isinstance(loaded.get("replacements", {}), dict):
        raise ConfigurationError("'replacements' must be a JSON object")

    logger.info(f"Configuration loaded from {path}")
    return merge_config(DEFAULT_CONFIG, loaded)


def resolve_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Expand ``~`` in the model path and fall back to ``OPENAI_API_KEY``.

    Modifies and returns ``config``.
    """
    model_path = config.get("model_path")
    if isinstance(model_path, str):
        config["model_path"] = os.path.expanduser(model_path)

    if not config.get("api_key"):
        config["api_key"] = os.environ.get("OPENAI_API_KEY", "")

    return config


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """
    Override config values with command-line flags that were given.

    Modifies and returns ``config``.
    """
    for dest, key in _CLI_OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            config[key] = value

    if getattr(args, "paste", False):
        config["paste"] = True

    return config
