from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

DEFAULT_SIGNATURE_TOLERANCE = 300


@dataclass(frozen=True)
class WebhookSettings:
    """Billing provider webhook configuration, passed explicitly to the dispatcher."""
    webhook_secret: Optional[str]
    signature_tolerance: int = DEFAULT_SIGNATURE_TOLERANCE

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "WebhookSettings":
        tolerance = config.get("STRIPE_WEBHOOK_TOLERANCE") or DEFAULT_SIGNATURE_TOLERANCE
        return cls(
            webhook_secret=config.get("STRIPE_WEBHOOK_SECRET") or None,
            signature_tolerance=int(tolerance),
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.webhook_secret:
            issues.append("Webhook secret not configured")
        if self.signature_tolerance <= 0:
            issues.append("Signature tolerance must be positive")

        return issues

    @property
    def is_configured(self) -> bool:
        return not self.validate()

    def __repr__(self) -> str:
        """Safe string representation hiding the secret."""
        return f"<WebhookSettings configured={self.is_configured} tolerance={self.signature_tolerance}>"
