"""Configuration management package for the transfer service"""

from .loader import ConfigLoader, get_config_loader, load_app_credentials

__all__ = [
    "ConfigLoader",
    "get_config_loader",
    "load_app_credentials",
]
