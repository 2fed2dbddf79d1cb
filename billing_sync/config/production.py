from .base import BaseConfig, ConfigurationError


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    DEBUG = False
    ENVIRONMENT = "production"

    @classmethod
    def validate(cls):
        if "sqlite" in (cls.SQLALCHEMY_DATABASE_URI or "").lower():
            raise ConfigurationError("SQLite is not suitable for production")
