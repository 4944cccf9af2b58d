"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (e.g., ~/.nanocli/config.yaml). Values are read by
the composition root in `nanocli.main` and passed into the services; the
services themselves never consult this module.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from nanocli.domain.models.common import (
    DEFAULT_BACKOFF_FACTOR, DEFAULT_INITIAL_DELAY_MS, DEFAULT_MAX_RETRIES, BackoffPolicy
)
from nanocli.infrastructure.ai.gemini.gemini_client import (
    DEFAULT_BASE_URL, DEFAULT_MODEL_ID, DEFAULT_TIMEOUT_SECONDS
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".nanocli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('retry.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to the accessors

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug(f".env file at {dotenv_path} was empty or unreadable.")
    else:
        logger.debug("Skipping .env file loading (no .env found).")

    # 3. Environment variables are read on every get_config call
    _loaded = True
    logger.info("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def env_var_name(key: str) -> str:
    """Maps a config key to its environment variable ('retry.factor' -> 'RETRY_FACTOR')."""
    return key.upper().replace(".", "_")


def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """
    Get a configuration value by key.

    Environment values are converted to bool/int/float unless `coerce`
    is False, in which case the raw string is returned.

    Priority:
    1. Test configuration
    2. Environment variable
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        raw = os.environ[env_key]
        return _coerce(raw) if coerce else raw

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def get_gemini_api_key() -> Optional[str]:
    """Convenience function to get the Gemini API key."""
    # Checks ENV GEMINI_API_KEY first, then yaml gemini.api_key
    key = get_config("GEMINI_API_KEY", coerce=False) or get_config("gemini.api_key", coerce=False)
    return str(key) if key is not None else None


def get_model_id() -> str:
    return str(get_config("gemini.model_id", DEFAULT_MODEL_ID))


def get_base_url() -> str:
    return str(get_config("gemini.base_url", DEFAULT_BASE_URL))


def get_timeout_seconds() -> float:
    return float(get_config("gemini.timeout_seconds", DEFAULT_TIMEOUT_SECONDS))


def get_int(key: str, default: int) -> int:
    """Reads a whole-number setting.

    Raises:
        ValueError: If the value is a bool, a fractional number, or not numeric.
    """
    value = get_config(key, default)
    if isinstance(value, bool):
        raise ValueError(f"Setting '{key}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValueError(f"Setting '{key}' must be an integer, got {value!r}")


def get_backoff_policy() -> BackoffPolicy:
    """Builds the retry policy from `retry.*` settings."""
    return BackoffPolicy(
        max_retries=get_int("retry.max_retries", DEFAULT_MAX_RETRIES),
        initial_delay_ms=get_int("retry.initial_delay_ms", DEFAULT_INITIAL_DELAY_MS),
        factor=get_int("retry.factor", DEFAULT_BACKOFF_FACTOR),
    )


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


def reset_configuration() -> None:
    """Forgets loaded YAML values so `load_configuration` runs again."""
    global _config, _loaded
    _config = {}
    _loaded = False
