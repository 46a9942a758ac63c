"""
errors.py — Rejection taxonomy for the incentive pool.

Every user-facing rejection is a RewardPoolError subclass with a stable
upper-case code. Messages are reason-prefixed ("ALREADY_CLAIMED: ...") so
logs and HTTP responses carry the same token.

All rejections are local, synchronous and non-retryable. A rejected call
leaves every ledger, pool and registry untouched.
"""


class RewardPoolError(Exception):
    """Base class for all rejections surfaced to callers."""

    code = "REWARD_POOL_ERROR"

    def __init__(self, detail: str = ""):
        self.detail = detail
        message = f"{self.code}: {detail}" if detail else self.code
        super().__init__(message)


# =========================================================================
# INPUT / REGISTRATION
# =========================================================================

class InvalidAddress(RewardPoolError):
    code = "INVALID_ADDRESS"


class InvalidTier(RewardPoolError):
    code = "INVALID_TIER"


class AlreadyAssigned(RewardPoolError):
    code = "ALREADY_ASSIGNED"


class AlreadyRegistered(RewardPoolError):
    code = "ALREADY_REGISTERED"


class DuplicateInRound(RewardPoolError):
    code = "DUPLICATE_IN_ROUND"


class EmptyBatch(RewardPoolError):
    code = "EMPTY_BATCH"


class LengthMismatch(RewardPoolError):
    code = "LENGTH_MISMATCH"


class UnknownRound(RewardPoolError):
    code = "UNKNOWN_ROUND"


# =========================================================================
# CLAIMS
# =========================================================================

class NotWhitelisted(RewardPoolError):
    code = "NOT_WHITELISTED"


class AlreadyClaimed(RewardPoolError):
    code = "ALREADY_CLAIMED"


class CooldownActive(RewardPoolError):
    code = "COOLDOWN_ACTIVE"


class NoClaimSelected(RewardPoolError):
    code = "NO_CLAIM_SELECTED"


class InsufficientPoolOrBalance(RewardPoolError):
    code = "INSUFFICIENT_POOL_OR_BALANCE"


# =========================================================================
# GATES
# =========================================================================

class ModeNotLive(RewardPoolError):
    code = "MODE_NOT_LIVE"


class Paused(RewardPoolError):
    code = "PAUSED"


class NotAuthorized(RewardPoolError):
    code = "NOT_AUTHORIZED"


class ReentrantCall(RewardPoolError):
    code = "REENTRANT_CALL"


# =========================================================================
# CONTRACT VIOLATIONS (not user-facing)
# =========================================================================

class PoolInvariantError(RuntimeError):
    """Raised when a pool would pay out more than its allocation.

    Callers gate eligibility and size before recording a claim, so reaching
    this is a programming error, not a rejection.
    """
    pass


class StateCorruptError(RuntimeError):
    """Persisted engine state exists but cannot be read back.

    The engine refuses to start rather than fall back to a fresh
    PRE_LAUNCH state, which would pay the launch distribution again.
    """
    pass
