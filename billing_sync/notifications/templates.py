# billing_sync/notifications/templates.py


class NotificationTemplates:
    """In-app notification copy. Each template returns (title, message)."""

    TRIAL_ENDING = "trial_ending"
    PAYMENT_FAILED = "payment_failed"

    @staticmethod
    def trial_ending(trial_end=None):
        title = "Your trial is ending soon"
        when = f"on {trial_end.strftime('%B %d, %Y')}" if trial_end else "soon"
        message = (
            f"Your free trial will end {when}. "
            "Add a payment method to continue your subscription."
        )
        return title, message

    @staticmethod
    def payment_failed():
        title = "Payment failed"
        message = (
            "We were unable to process your subscription payment. "
            "Please update your payment method to avoid service interruption."
        )
        return title, message
