from .stripe_webhook import bp as webhooks_bp

__all__ = ["webhooks_bp"]
