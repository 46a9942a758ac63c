"""
TEST ALLOCATION POOLS — Fixed Shares, Claimed Totals, Overdraw Guard
====================================================================
Validates basis-point allocation from total supply and that no pool can
ever report more claimed than allocated.
"""

import os
import sys
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, PROJECT_ROOT)

from incentive_pool.errors import PoolInvariantError
from incentive_pool.pools.allocation_pools import AllocationPoolManager
from incentive_pool.types import PoolKind

SHARES = {PoolKind.BUG_BOUNTY: 3000, PoolKind.DAPP: 4000, PoolKind.DEVELOPER: 3000}


class TestAllocation:

    def setup_method(self):
        self.pools = AllocationPoolManager(1_000_000, SHARES)

    def test_allocation_is_bps_of_supply(self):
        assert self.pools.allocation(PoolKind.BUG_BOUNTY) == 300_000
        assert self.pools.allocation(PoolKind.DAPP) == 400_000
        assert self.pools.allocation(PoolKind.DEVELOPER) == 300_000

    def test_allocation_rounds_down(self):
        pools = AllocationPoolManager(999, SHARES)
        assert pools.allocation(PoolKind.BUG_BOUNTY) == 299

    def test_shares_above_supply_rejected(self):
        with pytest.raises(ValueError, match="POOL_SHARES_EXCEED_SUPPLY"):
            AllocationPoolManager(1000, {**SHARES, PoolKind.DAPP: 4001})

    def test_missing_share_rejected(self):
        with pytest.raises(ValueError, match="POOL_SHARE_MISSING"):
            AllocationPoolManager(1000, {PoolKind.DAPP: 100})

    def test_fresh_pool_has_full_remaining(self):
        assert self.pools.claimed(PoolKind.DAPP) == 0
        assert self.pools.remaining(PoolKind.DAPP) == 400_000


class TestRecordClaim:

    def setup_method(self):
        self.pools = AllocationPoolManager(1_000_000, SHARES)

    def test_claim_reduces_remaining(self):
        self.pools.record_claim(PoolKind.DEVELOPER, 2_500)
        assert self.pools.claimed(PoolKind.DEVELOPER) == 2_500
        assert self.pools.remaining(PoolKind.DEVELOPER) == 297_500

    def test_claim_up_to_allocation_allowed(self):
        self.pools.record_claim(PoolKind.BUG_BOUNTY, 300_000)
        assert self.pools.remaining(PoolKind.BUG_BOUNTY) == 0

    def test_overdraw_is_contract_violation(self):
        self.pools.record_claim(PoolKind.BUG_BOUNTY, 299_999)
        with pytest.raises(PoolInvariantError, match="POOL_OVERDRAWN"):
            self.pools.record_claim(PoolKind.BUG_BOUNTY, 2)
        assert self.pools.claimed(PoolKind.BUG_BOUNTY) == 299_999

    def test_negative_claim_rejected(self):
        with pytest.raises(PoolInvariantError, match="NEGATIVE_CLAIM"):
            self.pools.record_claim(PoolKind.DAPP, -1)

    def test_can_cover(self):
        assert self.pools.can_cover(PoolKind.DAPP, 400_000) is True
        assert self.pools.can_cover(PoolKind.DAPP, 400_001) is False

    def test_snapshot_restore(self):
        state = self.pools.snapshot()
        self.pools.record_claim(PoolKind.DAPP, 10)
        self.pools.restore(state)
        assert self.pools.claimed(PoolKind.DAPP) == 0

    def test_exported_totals_reload(self):
        self.pools.record_claim(PoolKind.DEVELOPER, 2_500)
        data = self.pools.export_state()
        assert data["DEVELOPER"] == 2_500

        fresh = AllocationPoolManager(1_000_000, SHARES)
        fresh.import_state(data)
        assert fresh.remaining(PoolKind.DEVELOPER) == 297_500

    def test_overdrawn_totals_refused(self):
        data = self.pools.export_state()
        data["DAPP"] = 400_001
        with pytest.raises(ValueError, match="POOL_STATE_OUT_OF_RANGE"):
            self.pools.import_state(data)
        assert self.pools.claimed(PoolKind.DAPP) == 0

    def test_summary_lists_every_pool(self):
        summary = self.pools.summary()
        assert summary["total_supply"] == 1_000_000
        assert set(summary["pools"]) == {"BUG_BOUNTY", "DAPP", "DEVELOPER"}
        assert summary["pools"]["DAPP"]["remaining"] == 400_000
