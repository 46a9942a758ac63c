"""
distribution_engine.py — Reward amounts and pool-funded payouts

Two payout styles:
  - BULK PUSH: once, at launch, to every dapp member and every deployer
  - PULL CLAIM: user-initiated bug bounty / dapp round / deployment claims

Every payout follows the same order:
  1. eligibility and size checks (raise, nothing touched)
  2. claim record + pool debit
  3. CLAIMED event
  4. external transfer (last, so a re-entering transfer sees the claim
     already consumed)

Gates (pause, mode, admin) and rollback live in the engine facade. This
module assumes it runs inside an open transaction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from incentive_pool.config.reward_config import RewardConfig
from incentive_pool.errors import (
    AlreadyClaimed,
    InsufficientPoolOrBalance,
    NotWhitelisted,
    UnknownRound,
)
from incentive_pool.ledger.claim_ledger import ClaimLedger
from incentive_pool.ledger.event_log import EventKind, EventLog
from incentive_pool.ledger.token_ledger import TokenLedger
from incentive_pool.pools.allocation_pools import AllocationPoolManager
from incentive_pool.registry.eligibility_registry import EligibilityRegistry
from incentive_pool.types import BPS_DENOMINATOR, ClaimKind, PoolKind

logger = logging.getLogger(__name__)

BULK_DAPP = "BULK_DAPP"
BULK_DEVELOPER = "BULK_DEVELOPER"


@dataclass(frozen=True)
class Payout:
    """One settled transfer out of a pool."""
    user: str
    amount: int
    pool: PoolKind
    source: str
    round_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "amount": self.amount,
            "pool": self.pool.value,
            "source": self.source,
            "round_id": self.round_id,
        }


class DistributionEngine:

    def __init__(self, registry: EligibilityRegistry,
                 pools: AllocationPoolManager,
                 claims: ClaimLedger,
                 token: TokenLedger,
                 custody_address: str,
                 config: RewardConfig,
                 events: EventLog,
                 clock: Callable[[], float]):
        self._registry = registry
        self._pools = pools
        self._claims = claims
        self._token = token
        self._custody = custody_address
        self._config = config
        self._events = events
        self._clock = clock

    # =================================================================
    # AMOUNTS
    # =================================================================

    def launch_budget(self, pool: PoolKind) -> int:
        return self._pools.allocation(pool) * self._config.launch_distribution_bps // BPS_DENOMINATOR

    def dapp_round_amount(self, user: str) -> int:
        amount = self._config.monthly_dapp_reward
        if self._registry.has_good_uptime(user):
            amount += self._config.uptime_bonus
        return amount

    def bug_bounty_amount(self, user: str) -> int:
        return self._registry.tier_rate(self._registry.tier_of(user))

    def plan_dapp_push(self) -> List[Tuple[str, int]]:
        """Per-member launch amounts: equal base share plus uptime bonus.

        Bonuses are reserved out of the launch budget first so the push can
        never exceed it.
        """
        members = self._registry.dapp_members()
        if not members:
            return []
        bonus = self._config.uptime_bonus
        with_bonus = [m for m in members if self._registry.has_good_uptime(m)]
        budget = self.launch_budget(PoolKind.DAPP)
        bonus_total = bonus * len(with_bonus)
        if bonus_total > budget:
            raise InsufficientPoolOrBalance(
                f"uptime bonuses ({bonus_total}) exceed dapp launch budget ({budget})"
            )
        base = (budget - bonus_total) // len(members)
        return [
            (m, base + (bonus if self._registry.has_good_uptime(m) else 0))
            for m in members
        ]

    def plan_developer_push(self) -> List[Tuple[str, int]]:
        deployers = self._registry.deployers()
        if not deployers:
            return []
        share = self.launch_budget(PoolKind.DEVELOPER) // len(deployers)
        return [(d, share) for d in deployers]

    def quote(self, user: str, kind: ClaimKind, round_id: Optional[int] = None) -> int:
        """Amount the claim would pay right now, 0 if it would be rejected."""
        kind = ClaimKind(kind)
        if kind == ClaimKind.BUG_BOUNTY:
            epoch = self._registry.assignment_epoch(user)
            if (not self._registry.tier_of(user).is_paying
                    or self._claims.is_one_shot_consumed(user, kind, epoch)):
                return 0
            return self.bug_bounty_amount(user)
        if kind == ClaimKind.DAPP_ROUND:
            if (round_id is None
                    or not self._registry.is_round_member(user, round_id)
                    or self._claims.is_round_consumed(user, round_id)):
                return 0
            return self.dapp_round_amount(user)
        if kind == ClaimKind.CONTRACT_DEPLOYMENT:
            if not self._registry.is_deployer(user):
                return 0
            wait = self._claims.cooldown_remaining(
                user, self._clock(), self._config.cooldown_seconds)
            return 0 if wait > 0 else self._config.developer_deployment_reward
        raise ValueError(f"UNMAPPED_CLAIM_KIND: {kind!r}")

    # =================================================================
    # BULK PUSH
    # =================================================================

    def bulk_push_dapp(self) -> Tuple[Payout, ...]:
        plan = self.plan_dapp_push()
        return self._push(PoolKind.DAPP, plan, BULK_DAPP)

    def bulk_push_developer(self) -> Tuple[Payout, ...]:
        plan = self.plan_developer_push()
        return self._push(PoolKind.DEVELOPER, plan, BULK_DEVELOPER)

    def _push(self, pool: PoolKind, plan: Sequence[Tuple[str, int]],
              source: str) -> Tuple[Payout, ...]:
        if not plan:
            logger.info(f"BULK_PUSH_SKIPPED: {source} has no members")
            return ()
        total = sum(amount for _, amount in plan)
        self._check_funds(pool, total)
        payouts = tuple(self._settle(user, amount, pool, source) for user, amount in plan)
        logger.info(f"BULK_PUSH: {source} paid {len(payouts)} member(s), total={total}")
        return payouts

    # =================================================================
    # PULL CLAIMS
    # =================================================================

    def claim_bug_bounty(self, user: str) -> Payout:
        kind = ClaimKind.BUG_BOUNTY
        epoch = self._registry.assignment_epoch(user)
        if epoch and self._claims.is_one_shot_consumed(user, kind, epoch):
            raise AlreadyClaimed(f"{user} already claimed {kind.value}")
        tier = self._registry.tier_of(user)
        if not tier.is_paying:
            raise NotWhitelisted(f"{user} holds no bug bounty tier")

        amount = self._registry.tier_rate(tier)
        self._check_funds(kind.pool_kind, amount)
        self._claims.try_consume_one_shot(user, kind, epoch)
        self._registry.clear_tier(user)
        return self._settle(user, amount, kind.pool_kind, kind.value)

    def claim_contract_deployment(self, user: str) -> Payout:
        kind = ClaimKind.CONTRACT_DEPLOYMENT
        if not self._registry.is_deployer(user):
            raise NotWhitelisted(f"{user} is not a whitelisted deployer")

        amount = self._config.developer_deployment_reward
        self._check_funds(kind.pool_kind, amount)
        self._claims.try_consume_cooldown(user, self._clock(), self._config.cooldown_seconds)
        return self._settle(user, amount, kind.pool_kind, kind.value)

    def claim_dapp_round(self, user: str, round_id: int) -> Payout:
        kind = ClaimKind.DAPP_ROUND
        if not self._registry.round_exists(round_id):
            raise UnknownRound(f"dapp round {round_id} does not exist")
        if not self._registry.is_round_member(user, round_id):
            raise NotWhitelisted(f"{user} is not registered for dapp round {round_id}")

        amount = self.dapp_round_amount(user)
        self._check_funds(kind.pool_kind, amount)
        self._claims.try_consume_round(user, round_id)
        return self._settle(user, amount, kind.pool_kind, kind.value, round_id)

    # =================================================================
    # SETTLEMENT
    # =================================================================

    def _check_funds(self, pool: PoolKind, amount: int) -> None:
        if not self._pools.can_cover(pool, amount):
            raise InsufficientPoolOrBalance(
                f"{pool.value} pool has {self._pools.remaining(pool)} left, needs {amount}"
            )
        held = self._token.balance_of(self._custody)
        if held < amount:
            raise InsufficientPoolOrBalance(
                f"custody holds {held} {self._token.symbol}, needs {amount}"
            )

    def _settle(self, user: str, amount: int, pool: PoolKind, source: str,
                round_id: Optional[int] = None) -> Payout:
        self._pools.record_claim(pool, amount)
        payout = Payout(user, amount, pool, source, round_id)
        self._events.emit(EventKind.CLAIMED, **payout.to_dict())
        self._token.transfer(self._custody, user, amount)
        logger.info(f"PAYOUT: {source} {user} amount={amount} pool={pool.value}")
        return payout
