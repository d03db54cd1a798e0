"""Centralized config loading: read once at import time.

``swarm/config.yaml`` holds the defaults. Setting ``SWARM_CONFIG`` to another
YAML file overrides them key by key. API keys come from the environment (or a
``.env`` file at the project root), never from YAML.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from swarm.errors import ConfigurationError

# Load .env from project root (parent of swarm/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

# key -> smallest allowed value
_LOWER_BOUNDS = {
    "max_iterations": 1,
    "max_attempts": 1,
    "backoff_unit_seconds": 0,
    "quality_threshold": 0,
    "degraded_penalty": 0,
    "max_concurrency": 1,
}


def _read_yaml(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping, got {type(data).__name__}.")
    return data


def validate_config(config: dict) -> dict:
    """Reject settings the engine cannot run with. Returns the config."""
    for key, low in _LOWER_BOUNDS.items():
        value = config.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < low:
            raise ConfigurationError(f"Config '{key}' must be a number >= {low}, got {value!r}.")

    concurrency = config.get("max_concurrency")
    if concurrency is not None and not isinstance(concurrency, int):
        raise ConfigurationError(f"Config 'max_concurrency' must be a whole number, got {concurrency!r}.")

    timeout = config.get("call_timeout_seconds")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ConfigurationError(f"Config 'call_timeout_seconds' must be a positive number or null, got {timeout!r}.")

    threshold = config.get("quality_threshold")
    if threshold is not None and threshold > 100:
        raise ConfigurationError(f"Config 'quality_threshold' is on a 0-100 scale, got {threshold!r}.")

    providers = config.get("providers")
    if providers is not None and not isinstance(providers, list):
        raise ConfigurationError("Config 'providers' must be a list of provider names or {name, model} entries.")
    return config


def load_config(override: str | None = None) -> dict:
    """Defaults from config.yaml, overlaid with the file named by ``override``."""
    config = _read_yaml(CONFIG_PATH)
    if override:
        config.update(_read_yaml(Path(override)))
    return validate_config(config)


_config = load_config(os.getenv("SWARM_CONFIG"))


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
