"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.nationscript/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from nationscript.domain.models.common import BackoffPolicy, RateLimitPolicy

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".nationscript"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

DEFAULT_API_URL = "https://www.nationstates.net/cgi-bin/api.cgi"
DEFAULT_DUMP_URL = "https://www.nationstates.net/pages"
DEFAULT_API_VERSION = "12"
DEFAULT_DUMP_DIRECTORY = "./nsdumps"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False

def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML sections into dotted keys ({'api': {'url': x}} -> {'api.url': x})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to the accessors

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was loaded before.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
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

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment Variables (Highest priority) are handled by os.environ in get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")

def _convert_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value

def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (the key upper-cased, dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key (e.g., 'ratelimit.capacity')
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        return _convert_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]

    return default

def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the running process.

    Args:
        key: Configuration key (e.g., 'api.user_agent')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value!r}")
    _config[key] = value

def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
        logger.warning(f"Unexpected boolean value '{value}'. Defaulting to {default}.")
        return default
    return bool(value)

# --- Convenience Functions ---

def get_user_agent() -> Optional[str]:
    """The user agent identifying the script's operator, as the API rules require."""
    # Checks ENV NATIONSCRIPT_USER_AGENT first, then yaml api.user_agent
    agent = get_config('NATIONSCRIPT_USER_AGENT') or get_config('api.user_agent')
    return str(agent).strip() if agent else None

def get_api_url() -> str:
    return str(get_config('api.url', DEFAULT_API_URL))

def get_dump_url() -> str:
    return str(get_config('dumps.url', DEFAULT_DUMP_URL)).rstrip('/')

def get_api_version() -> Optional[str]:
    version = get_config('api.version', DEFAULT_API_VERSION)
    return str(version) if version not in (None, '') else None

def get_timeout() -> float:
    return float(get_config('api.timeout_seconds', 30.0))

def use_rate_limit() -> bool:
    """Whether outgoing calls pass through the admission controllers."""
    return _as_bool(get_config('ratelimit.enabled', True), default=True)

def get_rate_limit_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        window_seconds=float(get_config('ratelimit.window_seconds', 30.0)),
        capacity=int(get_config('ratelimit.capacity', 49)),
        safety_buffer_seconds=float(get_config('ratelimit.safety_buffer_seconds', 0.2)),
        stagger_seconds=float(get_config('ratelimit.stagger_seconds', 0.25)),
    )

def get_retry_policy() -> BackoffPolicy:
    return BackoffPolicy(
        max_retries=int(get_config('retry.max_retries', 3)),
        initial_delay=float(get_config('retry.initial_backoff_seconds', 1.0)),
        factor=float(get_config('retry.backoff_factor', 2.0)),
    )

def get_telegram_client_key() -> Optional[str]:
    key = get_config('NATIONSCRIPT_TG_CLIENT') or get_config('telegram.client_key')
    return str(key) if key else None

def get_dump_directory() -> Path:
    return Path(str(get_config('dumps.directory', DEFAULT_DUMP_DIRECTORY)))

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

# Load configuration when the module is imported
load_configuration()
