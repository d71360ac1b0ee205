"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML file (~/.yardcli/config.yaml), .env files and
environment variables, and turns them into the explicit ClientConfig values
the composition root hands to each RequestExecutor.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from yardcli.domain.models.api import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_MS, ClientConfig
from yardcli.domain.models.pricing import Address

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".yardcli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "YARDCLI_"

PRICING = "pricing" # quote, zone, distance and tax-lookup functions
TAX = "tax"         # optional third-party tax provider

DEFAULT_STORE_ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip": "62701",
}
DEFAULT_BASE_FEE = 10.0
DEFAULT_TAX_RATE = 0.08

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


class ConfigurationError(ValueError):
    """A configuration value is missing or invalid."""


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested mappings into dotted keys ({'a': {'b': 1}} -> {'a.b': 1})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Environment Variables
    3. .env file
    4. YAML configuration file

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
            with open(config_file, "r") as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug(".env file not found at or above current directory.")

    # 3. Environment variables are read by get_config at lookup time
    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets everything loaded so the next lookup reloads."""
    global _config, _loaded
    _config = {}
    _loaded = False


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _env_names(key: str) -> Tuple[str, str]:
    plain = key.upper().replace(".", "_")
    return f"{ENV_PREFIX}{plain}", plain


def _coerce(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if len(value) > 1 and value.startswith("0") and not value.startswith("0."):
        return value # ZIP codes like 01234 stay strings
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (YARDCLI_PRICING_BASE_URL, then PRICING_BASE_URL)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    for env_key in _env_names(key):
        if env_key in os.environ:
            return _coerce(os.environ[env_key])

    if not _loaded:
        load_configuration()
    if key in _config:
        return _config[key]

    return default


def get_mapping(key: str) -> Dict[str, str]:
    """Collects a mapping stored either whole under `key` or as `key.<name>` entries."""
    result: Dict[str, str] = {}
    prefix = f"{key}."
    if not _loaded:
        load_configuration()
    for source in (_config, _test_config):
        whole = source.get(key)
        if isinstance(whole, Mapping):
            result.update({str(k): str(v) for k, v in whole.items()})
        for name, value in source.items():
            if name.startswith(prefix):
                result[name[len(prefix):]] = str(value)
    return result


def _as_int(key: str, default: int) -> int:
    value = get_config(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config '{key}' must be an integer, got {value!r}") from e


def _as_float(key: str, default: float) -> float:
    value = get_config(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config '{key}' must be a number, got {value!r}") from e


# --- Convenience Functions ---

def build_client_config(family: str, required: bool = False) -> Optional[ClientConfig]:
    """Builds the ClientConfig for an endpoint family ('pricing' or 'tax').

    Args:
        family: Config key prefix of the endpoint family.
        required: Raise instead of returning None when no base URL is set.

    Raises:
        ConfigurationError: If required and missing, or if a value is invalid.
    """
    base_url = get_config(f"{family}.base_url")
    if not base_url:
        if required:
            raise ConfigurationError(
                f"Missing '{family}.base_url' (set {_env_names(family + '.base_url')[1]} or add it to {DEFAULT_CONFIG_FILE})"
            )
        logger.debug(f"No base URL configured for '{family}'")
        return None

    api_key = get_config(f"{family}.api_key")
    api_key = str(api_key) if api_key else None
    headers = get_mapping(f"{family}.headers")
    if family == PRICING and api_key:
        # functions gateway expects the key in its own header as well
        headers.setdefault("apikey", api_key)

    try:
        return ClientConfig(
            base_url=str(base_url),
            api_key=api_key,
            timeout_ms=_as_int(f"{family}.timeout_ms", DEFAULT_TIMEOUT_MS),
            max_retries=_as_int(f"{family}.max_retries", DEFAULT_MAX_RETRIES),
            headers=headers,
        )
    except ValueError as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"Invalid '{family}' configuration: {e}") from e


def get_store_address() -> Address:
    """Delivery origin (the yard)."""
    parts = {name: str(get_config(f"store.{name}", default)) for name, default in DEFAULT_STORE_ADDRESS.items()}
    return Address(street=parts["street"], city=parts["city"], state=parts["state"], postal_code=parts["zip"])


def get_base_delivery_fee() -> float:
    return _as_float("delivery.base_fee", DEFAULT_BASE_FEE)


def get_default_tax_rate() -> float:
    rate = _as_float("tax.default_rate", DEFAULT_TAX_RATE)
    if not 0 <= rate < 1:
        raise ConfigurationError(f"Config 'tax.default_rate' must be a fraction in [0, 1), got {rate}")
    return rate


def get_logging_settings() -> Tuple[str, Optional[str], Optional[str]]:
    """(level name, format or None, log file or None)."""
    level = str(get_config("logging.level", "WARNING")).upper()
    log_format = get_config("logging.format")
    log_file = get_config("logging.file")
    return level, (str(log_format) if log_format else None), (str(log_file) if log_file else None)


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
