"""
allocation_pools.py — Fixed-size reward pools

Each pool is a fixed basis-point share of total supply, computed once at
construction. The only mutation is record_claim(), and a pool can never
report more claimed than allocated.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping

from incentive_pool.errors import PoolInvariantError
from incentive_pool.types import BPS_DENOMINATOR, PoolKind

logger = logging.getLogger(__name__)


@dataclass
class Pool:
    kind: PoolKind
    allocation: int
    claimed: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.allocation - self.claimed)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "allocation": self.allocation,
            "claimed": self.claimed,
            "remaining": self.remaining,
        }


class AllocationPoolManager:
    """Owns the three pools. Allocations are immutable after construction."""

    def __init__(self, total_supply: int, shares_bps: Mapping[PoolKind, int]):
        if total_supply < 0:
            raise ValueError(f"TOTAL_SUPPLY_NEGATIVE: {total_supply}")
        missing = [k.value for k in PoolKind if k not in shares_bps]
        if missing:
            raise ValueError(f"POOL_SHARE_MISSING: {missing}")
        if sum(shares_bps[k] for k in PoolKind) > BPS_DENOMINATOR:
            raise ValueError("POOL_SHARES_EXCEED_SUPPLY")

        self._total_supply = total_supply
        self._pools: Dict[PoolKind, Pool] = {
            kind: Pool(kind, total_supply * shares_bps[kind] // BPS_DENOMINATOR)
            for kind in PoolKind
        }

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def allocation(self, kind: PoolKind) -> int:
        return self._pools[kind].allocation

    def claimed(self, kind: PoolKind) -> int:
        return self._pools[kind].claimed

    def remaining(self, kind: PoolKind) -> int:
        return self._pools[kind].remaining

    def can_cover(self, kind: PoolKind, amount: int) -> bool:
        return 0 <= amount <= self.remaining(kind)

    def record_claim(self, kind: PoolKind, amount: int) -> int:
        """Add amount to the pool's claimed total. Returns the new total."""
        if amount < 0:
            raise PoolInvariantError(f"NEGATIVE_CLAIM: {kind.value} amount={amount}")
        pool = self._pools[kind]
        new_total = pool.claimed + amount
        if new_total > pool.allocation:
            raise PoolInvariantError(
                f"POOL_OVERDRAWN: {kind.value} claimed={new_total} "
                f"allocation={pool.allocation}"
            )
        pool.claimed = new_total
        logger.debug(f"POOL_DEBIT: {kind.value} -{amount} remaining={pool.remaining}")
        return new_total

    # --- Snapshot ---

    def snapshot(self) -> Dict[PoolKind, int]:
        return {kind: pool.claimed for kind, pool in self._pools.items()}

    def restore(self, claimed: Mapping[PoolKind, int]) -> None:
        for kind, value in claimed.items():
            self._pools[kind].claimed = value

    # --- Persistence ---

    def export_state(self) -> Dict[str, int]:
        return {kind.value: pool.claimed for kind, pool in self._pools.items()}

    def import_state(self, data: Mapping[str, int]) -> None:
        """Load claimed totals. Allocations come from supply, never from disk."""
        claimed = {kind: int(data[kind.value]) for kind in PoolKind}
        for kind, value in claimed.items():
            if not 0 <= value <= self._pools[kind].allocation:
                raise ValueError(
                    f"POOL_STATE_OUT_OF_RANGE: {kind.value} claimed={value} "
                    f"allocation={self._pools[kind].allocation}"
                )
        self.restore(claimed)

    def summary(self) -> dict:
        return {
            "total_supply": self._total_supply,
            "pools": {kind.value: pool.to_dict() for kind, pool in self._pools.items()},
        }
