"""
engine.py — Incentive pool engine facade

Wires registry, pools, claim ledger, distribution and mode controller
together and applies the gates every entry point shares:

  ADMIN ENTRY POINTS (caller must be privileged, any mode):
    assign_tier, register_deployer, register_dapp_round,
    set_live, pause, unpause, emergency_sweep

  USER ENTRY POINTS (pause gate -> LIVE mode -> eligibility):
    claim_bug_bounty, claim_contract_deployment, claim_dapp_round, claim

Each entry point is one transaction: serialised, non-reentrant, and rolled
back in full on any exception.

With a state_file, every committed transaction saves mode, pause gate,
pool totals, registry and claim records as part of the commit. A failed
save rolls the transaction back. An unreadable file stops construction.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from incentive_pool.config.reward_config import RewardConfig
from incentive_pool.distribution.distribution_engine import DistributionEngine, Payout
from incentive_pool.errors import InsufficientPoolOrBalance, NoClaimSelected, StateCorruptError
from incentive_pool.governance.admin_guard import (
    AdminCapability,
    PauseGate,
    require_privileged,
)
from incentive_pool.governance.mode_controller import ModeController
from incentive_pool.governance.transaction_guard import TransactionGuard
from incentive_pool.ledger.claim_ledger import ClaimLedger
from incentive_pool.ledger.event_log import EventKind, EventLog
from incentive_pool.ledger.token_ledger import TokenLedger
from incentive_pool.pools.allocation_pools import AllocationPoolManager
from incentive_pool.registry.eligibility_registry import EligibilityRegistry, tier_share
from incentive_pool.storage.state_store import EngineStateStore
from incentive_pool.types import BugCriticality, ClaimKind, LaunchMode, PoolKind, validate_address

logger = logging.getLogger("incentive_pool.engine")


class RewardPoolEngine:
    """Bounded-pool reward accounting for bug bounty, dapp and developer users."""

    def __init__(self, token: TokenLedger, engine_address: str,
                 admin: AdminCapability,
                 config: Optional[RewardConfig] = None,
                 pause_gate: Optional[PauseGate] = None,
                 clock: Callable[[], float] = time.time,
                 event_log: Optional[EventLog] = None,
                 state_file: Optional[Path] = None):
        self._config = (config or RewardConfig()).ensure_valid()
        self._token = token
        self._address = validate_address(engine_address)
        self._admin = admin
        self._pause = pause_gate or PauseGate()
        self._clock = clock
        self._events = event_log or EventLog(clock=clock)

        # Supply is read once. Allocations never move afterwards.
        self._pools = AllocationPoolManager(token.total_supply(), self._config.pool_bps())
        self._registry = EligibilityRegistry(
            lambda tier: tier_share(
                self._pools.allocation(PoolKind.BUG_BOUNTY),
                self._config.tier_bps(tier),
            )
        )
        self._claims = ClaimLedger()
        self._mode = ModeController()
        self._distribution = DistributionEngine(
            self._registry, self._pools, self._claims, token,
            self._address, self._config, self._events, clock,
        )

        self._store = EngineStateStore(state_file) if state_file else None
        if self._store is not None:
            stored = self._store.load()
            if stored is not None:
                self._import_state(stored)

        self._tx = TransactionGuard([
            self._registry, self._pools, self._claims,
            self._mode, self._pause, self._events,
        ])
        # Roll external balances back too when the ledger supports it
        if hasattr(token, "snapshot") and hasattr(token, "restore"):
            self._tx.enlist(token)
        if self._store is not None:
            self._tx.add_commit_hook(self._save_state)

        logger.info(
            f"ENGINE_READY: supply={self._pools.total_supply} "
            f"{getattr(token, 'symbol', '')} mode={self._mode.mode_name}"
        )

    # =================================================================
    # PERSISTENCE
    # =================================================================

    def _export_state(self) -> dict:
        return {
            "total_supply": self._pools.total_supply,
            "mode": self._mode.export_state(),
            "paused": self._pause.is_paused,
            "pools": self._pools.export_state(),
            "registry": self._registry.export_state(),
            "claims": self._claims.export_state(),
        }

    def _save_state(self) -> None:
        self._store.save(self._export_state())

    def _import_state(self, data: dict) -> None:
        path = self._store.path
        try:
            if data["total_supply"] != self._pools.total_supply:
                raise ValueError(
                    f"SUPPLY_MISMATCH: stored={data['total_supply']} "
                    f"token={self._pools.total_supply}"
                )
            self._mode.import_state(data["mode"])
            self._pause.restore(bool(data["paused"]))
            self._pools.import_state(data["pools"])
            self._registry.import_state(data["registry"])
            self._claims.import_state(data["claims"])
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"STATE_REJECTED: {path}: {e!r}")
            raise StateCorruptError(f"STATE_REJECTED: {path}: {e!r}") from e
        logger.info(f"STATE_RESTORED: {path} mode={self._mode.mode_name}")

    # =================================================================
    # REGISTRATION (admin)
    # =================================================================

    def assign_tier(self, caller: str, users: Sequence[str],
                    tier: BugCriticality) -> int:
        require_privileged(self._admin, caller, "assign bug bounty tiers")
        with self._tx.transaction("assign_tier"):
            rate = self._registry.assign_tier(list(users), tier)
            tier = BugCriticality(tier)
            self._events.emit(EventKind.WHITELIST_UPDATED, category=PoolKind.BUG_BOUNTY.value,
                              tier=tier.name, users=list(users))
            self._events.emit(EventKind.CLAIM_AMOUNT_UPDATED, tier=tier.name, per_user=rate)
            return rate

    def register_deployer(self, caller: str, users: Sequence[str]) -> int:
        require_privileged(self._admin, caller, "register deployers")
        with self._tx.transaction("register_deployer"):
            total = self._registry.register_deployer(list(users))
            self._events.emit(EventKind.WHITELIST_UPDATED, category=PoolKind.DEVELOPER.value,
                              users=list(users))
            return total

    def register_dapp_round(self, caller: str, users: Sequence[str],
                            uptime_flags: Sequence[bool]) -> int:
        require_privileged(self._admin, caller, "register dapp rounds")
        with self._tx.transaction("register_dapp_round"):
            round_id = self._registry.register_dapp_round(list(users), list(uptime_flags))
            self._events.emit(EventKind.WHITELIST_UPDATED, category=PoolKind.DAPP.value,
                              round_id=round_id, users=list(users))
            return round_id

    # =================================================================
    # MODE / PAUSE / SWEEP (admin)
    # =================================================================

    def set_live(self, caller: str) -> dict:
        """Open claims. The first call also runs the launch distribution."""
        require_privileged(self._admin, caller, "launch the program")
        with self._tx.transaction("set_live"):
            payouts = []

            def launch():
                payouts.extend(self._distribution.bulk_push_dapp())
                payouts.extend(self._distribution.bulk_push_developer())

            result = self._mode.set_live(launch)
            if result["allowed"]:
                self._events.emit(EventKind.MODE_CHANGED, mode=LaunchMode.LIVE.name)
            result["payouts"] = [p.to_dict() for p in payouts]
            return result

    def pause(self, caller: str) -> bool:
        require_privileged(self._admin, caller, "pause claims")
        with self._tx.transaction("pause"):
            changed = self._pause.pause()
            if changed:
                self._events.emit(EventKind.PAUSE_CHANGED, paused=True)
                logger.warning("CLAIMS_PAUSED")
            return changed

    def unpause(self, caller: str) -> bool:
        require_privileged(self._admin, caller, "unpause claims")
        with self._tx.transaction("unpause"):
            changed = self._pause.unpause()
            if changed:
                self._events.emit(EventKind.PAUSE_CHANGED, paused=False)
                logger.info("CLAIMS_RESUMED")
            return changed

    def emergency_sweep(self, caller: str, token: TokenLedger) -> int:
        """Move the engine's whole balance of any token to the caller.

        Works on raw custody. Pool accounting is not touched.
        """
        require_privileged(self._admin, caller, "sweep custody")
        with self._tx.transaction("emergency_sweep"):
            balance = token.balance_of(self._address)
            if balance <= 0:
                raise InsufficientPoolOrBalance(
                    f"engine holds no {getattr(token, 'symbol', 'tokens')}"
                )
            self._events.emit(EventKind.SWEPT, token=getattr(token, "symbol", ""),
                              to=caller, amount=balance)
            token.transfer(self._address, caller, balance)
            logger.warning(f"EMERGENCY_SWEEP: {balance} {getattr(token, 'symbol', '')} -> {caller}")
            return balance

    # =================================================================
    # CLAIMS (users)
    # =================================================================

    def _require_claims_open(self) -> None:
        self._pause.require_open()
        self._mode.require_live()

    def claim_bug_bounty(self, user: str) -> Payout:
        with self._tx.transaction("claim_bug_bounty"):
            self._require_claims_open()
            return self._distribution.claim_bug_bounty(user)

    def claim_contract_deployment(self, user: str) -> Payout:
        with self._tx.transaction("claim_contract_deployment"):
            self._require_claims_open()
            return self._distribution.claim_contract_deployment(user)

    def claim_dapp_round(self, user: str, round_id: int) -> Payout:
        with self._tx.transaction("claim_dapp_round"):
            self._require_claims_open()
            return self._distribution.claim_dapp_round(user, round_id)

    def claim(self, user: str, kind: Optional[ClaimKind] = None,
              round_id: Optional[int] = None) -> Payout:
        """Single entry point dispatching on the claim kind."""
        if kind is None:
            raise NoClaimSelected("no claim kind given")
        try:
            kind = ClaimKind(kind)
        except ValueError:
            raise NoClaimSelected(f"unknown claim kind {kind!r}")
        if kind == ClaimKind.BUG_BOUNTY:
            return self.claim_bug_bounty(user)
        if kind == ClaimKind.CONTRACT_DEPLOYMENT:
            return self.claim_contract_deployment(user)
        if kind == ClaimKind.DAPP_ROUND:
            if round_id is None:
                raise NoClaimSelected("dapp round claim needs a round_id")
            return self.claim_dapp_round(user, round_id)
        raise NoClaimSelected(f"unsupported claim kind {kind!r}")

    # =================================================================
    # VIEWS
    # =================================================================

    @property
    def address(self) -> str:
        return self._address

    @property
    def token(self) -> TokenLedger:
        return self._token

    @property
    def config(self) -> RewardConfig:
        return self._config

    @property
    def mode(self) -> LaunchMode:
        return self._mode.mode

    @property
    def launched(self) -> bool:
        return self._mode.distributed

    @property
    def paused(self) -> bool:
        return self._pause.is_paused

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def pools(self) -> AllocationPoolManager:
        return self._pools

    @property
    def registry(self) -> EligibilityRegistry:
        return self._registry

    @property
    def claims(self) -> ClaimLedger:
        return self._claims

    def remaining(self, pool: PoolKind) -> int:
        return self._pools.remaining(pool)

    def quote(self, user: str, kind: ClaimKind, round_id: Optional[int] = None) -> int:
        return self._distribution.quote(user, kind, round_id)

    def pool_summary(self) -> dict:
        summary = self._pools.summary()
        summary["mode"] = self._mode.mode_name
        summary["launched"] = self._mode.distributed
        summary["paused"] = self._pause.is_paused
        summary["custody_balance"] = self._token.balance_of(self._address)
        summary["registry"] = self._registry.to_dict()
        summary["claims"] = self._claims.to_dict()
        summary["transactions"] = self._tx.stats()
        return summary

    def user_status(self, user: str) -> dict:
        rounds = self._registry.rounds_of(user)
        last = self._claims.last_claim_at(user)
        return {
            "user": user,
            "bug_bounty": {
                "tier": self._registry.tier_of(user).name,
                "claimable": self.quote(user, ClaimKind.BUG_BOUNTY),
            },
            "developer": {
                "whitelisted": self._registry.is_deployer(user),
                "last_claim_at": last,
                "cooldown_remaining": self._claims.cooldown_remaining(
                    user, self._clock(), self._config.cooldown_seconds),
                "claimable": self.quote(user, ClaimKind.CONTRACT_DEPLOYMENT),
            },
            "dapp": {
                "good_uptime": self._registry.has_good_uptime(user),
                "rounds": {
                    r: {
                        "claimed": self._claims.is_round_consumed(user, r),
                        "claimable": self.quote(user, ClaimKind.DAPP_ROUND, r),
                    }
                    for r in rounds
                },
            },
        }

    def claimable_rounds(self, user: str) -> Tuple[int, ...]:
        return tuple(
            r for r in self._registry.rounds_of(user)
            if not self._claims.is_round_consumed(user, r)
        )
