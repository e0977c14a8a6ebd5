"""Tool configuration loader for devx-config."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .aws_client import DEFAULT_REGION, DEFAULT_TIMEOUT
from .preferences import get_preference

logger = logging.getLogger(__name__)

SECRETS_BACKENDS = ("ssm", "secretsmanager")

REGION_ENV = "DEVX_CONFIG_REGION"
PROFILE_ENV = "DEVX_CONFIG_PROFILE"


class ConfigError(Exception):
    """Configuration error exception."""
    pass


@dataclass
class ToolConfig:
    """Settings for talking to AWS, after defaults and overrides."""
    region: str = DEFAULT_REGION
    profile: Optional[str] = None
    max_attempts: int = 1
    timeout_seconds: float = DEFAULT_TIMEOUT
    secret_retention_days: int = 7
    secrets_backend: str = "ssm"
    source: Optional[str] = None


def default_config_path() -> Path:
    return Path.home() / ".config" / "devx-config" / "config.yml"


def _get_config_path() -> Optional[str]:
    """
    Find the config file.

    Priority order:
    1. User preference (set by `devx-config config set-path`), if the file exists
    2. Default location: ~/.config/devx-config/config.yml

    Returns:
        Absolute path to the config file, or None when neither exists
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    return None


def _section(raw: Dict[str, Any], name: str, config_path: str) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' in {config_path} must be a mapping")
    return section


def _parse(raw: Dict[str, Any], config_path: str) -> ToolConfig:
    aws = _section(raw, "aws", config_path)
    store = _section(raw, "store", config_path)
    config = ToolConfig(source=config_path)

    if "region" in aws:
        config.region = str(aws["region"])
    if aws.get("profile"):
        config.profile = str(aws["profile"])

    try:
        if "max_attempts" in aws:
            config.max_attempts = int(aws["max_attempts"])
        if "timeout_seconds" in store:
            config.timeout_seconds = float(store["timeout_seconds"])
        if "secret_retention_days" in store:
            config.secret_retention_days = int(store["secret_retention_days"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting in {config_path}: {e}")

    if config.max_attempts < 1:
        raise ConfigError("'aws.max_attempts' must be at least 1")
    if config.timeout_seconds <= 0:
        raise ConfigError("'store.timeout_seconds' must be positive")

    if "secrets_backend" in store:
        config.secrets_backend = str(store["secrets_backend"])
    if config.secrets_backend not in SECRETS_BACKENDS:
        raise ConfigError(
            f"Unsupported secrets backend: {config.secrets_backend}\n"
            f"Supported backends: {', '.join(SECRETS_BACKENDS)}"
        )

    return config


def load_config() -> ToolConfig:
    """
    Load configuration from YAML, falling back to defaults.

    A missing file is not an error. Environment variables DEVX_CONFIG_REGION
    and DEVX_CONFIG_PROFILE override the file.

    Raises:
        ConfigError: If the file exists but is empty, unparsable or invalid
    """
    config_path = _get_config_path()

    if config_path is None:
        logger.debug("No config file found, using defaults")
        config = ToolConfig()
    else:
        try:
            with open(config_path, 'r') as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read config file at {config_path}: {e}")

        if not raw:
            raise ConfigError(f"Config file at {config_path} is empty")
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file at {config_path} must contain a mapping")

        config = _parse(raw, config_path)
        logger.info(f"Configuration loaded successfully from {config_path}")

    if os.getenv(REGION_ENV):
        config.region = os.environ[REGION_ENV]
    if os.getenv(PROFILE_ENV):
        config.profile = os.environ[PROFILE_ENV]

    logger.debug(f"Using region {config.region}, profile {config.profile or 'default'}")
    return config
