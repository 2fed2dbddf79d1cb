from .billing_repo import BillingRepository, storage_guard

__all__ = ["BillingRepository", "storage_guard"]
