"""
incentive_pool — Bounded-pool reward accounting.

Pays a fixed-supply token to three disjoint populations:
- bug bounty researchers (tiered, one-shot)
- dapp users (per round, with sticky uptime bonus)
- contract deployers (launch grant + 30-day recurring claim)

Cumulative payouts per pool never exceed the pool's fixed share of supply.
"""
from .config.reward_config import RewardConfig
from .distribution.distribution_engine import Payout
from .engine import RewardPoolEngine
from .errors import RewardPoolError
from .governance.admin_guard import AdminGuard, PauseGate
from .ledger.event_log import EventKind, EventLog
from .ledger.token_ledger import InMemoryTokenLedger, TokenLedger
from .types import BugCriticality, ClaimKind, LaunchMode, PoolKind, ZERO_ADDRESS

__all__ = [
    "AdminGuard",
    "BugCriticality",
    "ClaimKind",
    "EventKind",
    "EventLog",
    "InMemoryTokenLedger",
    "LaunchMode",
    "PauseGate",
    "Payout",
    "PoolKind",
    "RewardConfig",
    "RewardPoolEngine",
    "RewardPoolError",
    "TokenLedger",
    "ZERO_ADDRESS",
]
