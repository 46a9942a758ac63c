"""
types.py — Closed enums and address validation for the incentive pool.

CLOSED ENUMS:
- PoolKind: 3 members (one per reward population)
- BugCriticality: 4 members (NONE + three paying tiers)
- ClaimKind: 3 members (one per user-initiated claim path)
- LaunchMode: 2 members

Dispatch on these is exhaustive. No string-keyed branching.
"""

from enum import Enum, IntEnum
from typing import Optional

from .errors import InvalidAddress


ZERO_ADDRESS = "0x" + "0" * 40
BPS_DENOMINATOR = 10_000


class PoolKind(str, Enum):
    BUG_BOUNTY = "BUG_BOUNTY"
    DAPP = "DAPP"
    DEVELOPER = "DEVELOPER"


class BugCriticality(IntEnum):
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def is_paying(self) -> bool:
        return self != BugCriticality.NONE


class ClaimKind(str, Enum):
    BUG_BOUNTY = "BUG_BOUNTY"
    DAPP_ROUND = "DAPP_ROUND"
    CONTRACT_DEPLOYMENT = "CONTRACT_DEPLOYMENT"

    @property
    def pool_kind(self) -> PoolKind:
        """Pool a claim of this kind is paid from."""
        if self == ClaimKind.BUG_BOUNTY:
            return PoolKind.BUG_BOUNTY
        if self == ClaimKind.DAPP_ROUND:
            return PoolKind.DAPP
        if self == ClaimKind.CONTRACT_DEPLOYMENT:
            return PoolKind.DEVELOPER
        raise ValueError(f"UNMAPPED_CLAIM_KIND: {self!r}")


class LaunchMode(IntEnum):
    PRE_LAUNCH = 0
    LIVE = 1


def is_valid_address(address: Optional[str]) -> bool:
    """DENY-BY-DEFAULT address check. None, blank and zero address are invalid."""
    if address is None:
        return False
    if not isinstance(address, str):
        return False
    if not address.strip():
        return False
    return address.lower() != ZERO_ADDRESS


def validate_address(address: Optional[str]) -> str:
    if not is_valid_address(address):
        raise InvalidAddress(f"{address!r} is not a usable address")
    return address
