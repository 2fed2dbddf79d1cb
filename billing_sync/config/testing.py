from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Test configuration. In-memory database and a fixed webhook secret.
    """

    TESTING = True
    ENVIRONMENT = "testing"

    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}

    STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
    STRIPE_WEBHOOK_TOLERANCE = 300

    SENTRY_DSN = None
