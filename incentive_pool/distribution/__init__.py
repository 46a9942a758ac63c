from .distribution_engine import BULK_DAPP, BULK_DEVELOPER, DistributionEngine, Payout

__all__ = ["BULK_DAPP", "BULK_DEVELOPER", "DistributionEngine", "Payout"]
