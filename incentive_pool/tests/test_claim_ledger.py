"""
TEST CLAIM LEDGER — One-Shot, Round and Cooldown Records
========================================================
"""

import os
import sys
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, PROJECT_ROOT)

from incentive_pool.errors import AlreadyClaimed, CooldownActive
from incentive_pool.ledger.claim_ledger import ClaimLedger, DEFAULT_COOLDOWN_SECONDS
from incentive_pool.types import ClaimKind

DAY = 86_400
T0 = 1_700_000_000.0


class TestOneShot:

    def setup_method(self):
        self.ledger = ClaimLedger()

    def test_first_consume_succeeds(self):
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 1)
        assert self.ledger.is_one_shot_consumed("0xA", ClaimKind.BUG_BOUNTY, 1)

    def test_second_consume_rejected(self):
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 1)
        with pytest.raises(AlreadyClaimed, match="ALREADY_CLAIMED"):
            self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 1)

    def test_new_epoch_is_a_new_record(self):
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 1)
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 2)
        assert self.ledger.is_one_shot_consumed("0xA", ClaimKind.BUG_BOUNTY, 1)

    def test_users_independent(self):
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY)
        self.ledger.try_consume_one_shot("0xB", ClaimKind.BUG_BOUNTY)


class TestRounds:

    def setup_method(self):
        self.ledger = ClaimLedger()

    def test_each_round_once(self):
        self.ledger.try_consume_round("0xA", 1)
        self.ledger.try_consume_round("0xA", 2)
        with pytest.raises(AlreadyClaimed):
            self.ledger.try_consume_round("0xA", 1)


class TestCooldown:

    def setup_method(self):
        self.ledger = ClaimLedger()

    def test_default_period_is_thirty_days(self):
        assert DEFAULT_COOLDOWN_SECONDS == 30 * DAY

    def test_first_claim_stamps_time(self):
        self.ledger.try_consume_cooldown("0xD", T0)
        assert self.ledger.last_claim_at("0xD") == T0

    def test_day_29_rejected(self):
        self.ledger.try_consume_cooldown("0xD", T0)
        with pytest.raises(CooldownActive, match="COOLDOWN_ACTIVE"):
            self.ledger.try_consume_cooldown("0xD", T0 + 29 * DAY)
        assert self.ledger.last_claim_at("0xD") == T0

    def test_day_30_allowed(self):
        self.ledger.try_consume_cooldown("0xD", T0)
        self.ledger.try_consume_cooldown("0xD", T0 + 30 * DAY)
        assert self.ledger.last_claim_at("0xD") == T0 + 30 * DAY

    def test_window_rolls_from_last_success(self):
        self.ledger.try_consume_cooldown("0xD", T0)
        self.ledger.try_consume_cooldown("0xD", T0 + 45 * DAY)
        with pytest.raises(CooldownActive):
            self.ledger.try_consume_cooldown("0xD", T0 + 60 * DAY)

    def test_remaining(self):
        assert self.ledger.cooldown_remaining("0xD", T0) == 0.0
        self.ledger.try_consume_cooldown("0xD", T0)
        assert self.ledger.cooldown_remaining("0xD", T0 + DAY) == 29 * DAY

    def test_custom_period(self):
        self.ledger.try_consume_cooldown("0xD", T0, period=60)
        self.ledger.try_consume_cooldown("0xD", T0 + 60, period=60)


class TestUndoAndExport:

    def setup_method(self):
        self.ledger = ClaimLedger()
        self.ledger.try_consume_cooldown("0xD", T0)

    def test_restore_unwinds_claims(self):
        mark = self.ledger.snapshot()
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 1)
        self.ledger.try_consume_round("0xA", 1)
        self.ledger.try_consume_cooldown("0xD", T0 + 30 * DAY)
        self.ledger.try_consume_cooldown("0xE", T0)
        self.ledger.restore(mark)

        assert not self.ledger.is_one_shot_consumed("0xA", ClaimKind.BUG_BOUNTY, 1)
        assert not self.ledger.is_round_consumed("0xA", 1)
        assert self.ledger.last_claim_at("0xD") == T0
        assert self.ledger.last_claim_at("0xE") is None

    def test_exported_state_reloads(self):
        self.ledger.try_consume_one_shot("0xA", ClaimKind.BUG_BOUNTY, 2)
        self.ledger.try_consume_round("0xA", 3)

        reloaded = ClaimLedger()
        reloaded.import_state(self.ledger.export_state())
        assert reloaded.is_one_shot_consumed("0xA", ClaimKind.BUG_BOUNTY, 2)
        assert reloaded.is_round_consumed("0xA", 3)
        with pytest.raises(CooldownActive):
            reloaded.try_consume_cooldown("0xD", T0 + DAY)
