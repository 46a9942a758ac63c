from .eligibility_registry import EligibilityRegistry, tier_share

__all__ = ["EligibilityRegistry", "tier_share"]
