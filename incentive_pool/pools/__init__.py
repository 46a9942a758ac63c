from .allocation_pools import AllocationPoolManager, Pool

__all__ = ["AllocationPoolManager", "Pool"]
