"""Configuration loader for the transfer service

Loads configuration from multiple sources with the following priority:
1. Environment variables (highest priority)
2. .env file
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from dotenv import load_dotenv

from errors import ConfigurationError

# Set up logger for config loader
logger = logging.getLogger(__name__)


class ConfigLoader:
    """Handles loading configuration from various sources"""

    def __init__(self, env_path: Optional[str] = None):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to '.env' in the current directory.
        """
        self.env_path = Path(env_path) if env_path else Path(".env")
        self._load_env_file()

    def _load_env_file(self):
        """Load environment variables from .env file if it exists"""
        if self.env_path.exists():
            load_dotenv(dotenv_path=self.env_path)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(f".env file not found at {self.env_path}, using environment variables and defaults only")

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value with priority: env > default

        Args:
            env_var: Environment variable name to check
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = os.getenv(env_var)
        if env_value is not None:
            # bool must be checked before int (bool is a subclass of int)
            if isinstance(default, bool):
                return env_value.lower() in ('true', '1', 'yes')
            elif isinstance(default, int):
                try:
                    return int(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as int, using default: {default}")
                    return default
            elif isinstance(default, float):
                try:
                    return float(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as float, using default: {default}")
                    return default
            return env_value

        # Expand home directory if it's a path
        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default


# Create a global instance
_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_app_credentials(prefix: str, require_secret: bool = True, loader: Optional[ConfigLoader] = None):
    """Load the OAuth client key/secret pair for a provider

    Reads ``<PREFIX>_KEY`` and ``<PREFIX>_SECRET``.

    Args:
        prefix: Environment prefix, e.g. "POD"
        require_secret: Whether a missing secret is an error
        loader: Config loader to read from (default: global instance)

    Returns:
        AppCredentials instance

    Raises:
        ConfigurationError: If the key (or a required secret) is not set
    """
    from oauth.models import AppCredentials

    loader = loader or get_config_loader()
    key_var = f"{prefix}_KEY"
    secret_var = f"{prefix}_SECRET"
    key = loader.get(key_var, "")
    secret = loader.get(secret_var, "")

    if not key:
        raise ConfigurationError(f"Missing {key_var}. Did you set {key_var} and {secret_var}?")
    if require_secret and not secret:
        raise ConfigurationError(f"Missing {secret_var}. Did you set {key_var} and {secret_var}?")

    return AppCredentials(key=key, secret=secret or None)
