import os

from .base import ConfigurationError
from .development import DevelopmentConfig
from .production import ProductionConfig
from .settings import WebhookSettings
from .testing import TestingConfig

CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name=None):
    """
    Resolve and return the correct configuration class.

    Uses the explicit name when given, otherwise the APP_ENV environment
    variable. Supported values:
    - development
    - testing
    - production
    """

    env = (name or os.getenv("APP_ENV", "development")).lower()

    try:
        return CONFIGS[env]
    except KeyError:
        raise ConfigurationError(f"Invalid APP_ENV value: {env}") from None


__all__ = ["ConfigurationError", "WebhookSettings", "get_config"]
