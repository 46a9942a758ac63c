"""
eligibility_registry.py — Per-category whitelists

Three populations, each write-once per user:
  - BUG BOUNTY: one severity tier per user until the reward is claimed
  - DAPP: per-round membership, plus a sticky good-uptime flag
  - DEVELOPER: one-time deployer whitelist

Batches are validated in full before anything is written.
A rejected batch leaves the registry unchanged.

Rollback uses an undo log: every write pushes its inverse, snapshot()
marks the log and restore() unwinds to the mark. Only the most recent
snapshot can be restored.
"""

import logging
from typing import Callable, Dict, FrozenSet, List, Sequence, Set

from incentive_pool.errors import (
    AlreadyAssigned,
    AlreadyRegistered,
    DuplicateInRound,
    EmptyBatch,
    InvalidTier,
    LengthMismatch,
)
from incentive_pool.types import BPS_DENOMINATOR, BugCriticality, validate_address

logger = logging.getLogger(__name__)


def _put(mapping: dict, key, previous) -> None:
    if previous is None:
        mapping.pop(key, None)
    else:
        mapping[key] = previous


class EligibilityRegistry:
    """Owns every whitelist and the dapp round counter."""

    def __init__(self, tier_pool_share: Callable[[BugCriticality], int]):
        # tier -> token amount set aside for that tier
        self._tier_pool_share = tier_pool_share
        self._undo: List[Callable[[], None]] = []
        self._reset()

    def _reset(self) -> None:
        self._tiers: Dict[str, BugCriticality] = {}
        self._tier_rates: Dict[BugCriticality, int] = {}
        self._tier_members: Dict[BugCriticality, List[str]] = {
            t: [] for t in BugCriticality if t.is_paying
        }
        self._assignment_epochs: Dict[str, int] = {}

        self._deployers: List[str] = []
        self._deployer_set: Set[str] = set()

        self._round_id = 0
        self._round_members: Dict[int, FrozenSet[str]] = {}
        self._user_rounds: Dict[str, List[int]] = {}
        self._dapp_registrations: List[str] = []
        self._good_uptime: Set[str] = set()

    # -----------------------------------------------------------------
    # BUG BOUNTY
    # -----------------------------------------------------------------

    def assign_tier(self, users: Sequence[str], tier: BugCriticality) -> int:
        """Assign a severity tier to a batch. Returns the new per-user rate.

        The rate is the tier's share split over THIS batch only. It replaces
        whatever rate earlier batches set for the same tier.
        """
        tier = self._coerce_tier(tier)
        if not users:
            raise EmptyBatch(f"no users given for tier {tier.name}")

        seen: Set[str] = set()
        for user in users:
            validate_address(user)
            if self.tier_of(user).is_paying or user in seen:
                raise AlreadyAssigned(f"{user} already holds a bug bounty tier")
            seen.add(user)

        previous = {u: (self._tiers.get(u), self._assignment_epochs.get(u)) for u in users}
        previous_rate = self._tier_rates.get(tier)
        members = self._tier_members[tier]
        members_before = len(members)

        def undo():
            for user, (old_tier, old_epoch) in previous.items():
                _put(self._tiers, user, old_tier)
                _put(self._assignment_epochs, user, old_epoch)
            del members[members_before:]
            _put(self._tier_rates, tier, previous_rate)

        self._undo.append(undo)
        for user in users:
            self._tiers[user] = tier
            members.append(user)
            self._assignment_epochs[user] = self._assignment_epochs.get(user, 0) + 1

        rate = self._tier_pool_share(tier) // len(users)
        self._tier_rates[tier] = rate
        logger.info(
            f"TIER_ASSIGNED: {len(users)} user(s) -> {tier.name}, per_user={rate}"
        )
        return rate

    def clear_tier(self, user: str) -> None:
        previous = self._tiers.get(user)
        self._undo.append(lambda: _put(self._tiers, user, previous))
        self._tiers[user] = BugCriticality.NONE

    def tier_of(self, user: str) -> BugCriticality:
        return self._tiers.get(user, BugCriticality.NONE)

    def tier_rate(self, tier: BugCriticality) -> int:
        return self._tier_rates.get(tier, 0)

    def tier_members(self, tier: BugCriticality) -> List[str]:
        """Every user ever assigned to the tier, in assignment order."""
        return list(self._tier_members.get(tier, []))

    def assignment_epoch(self, user: str) -> int:
        """How many times the user has been assigned a tier (0 = never)."""
        return self._assignment_epochs.get(user, 0)

    @staticmethod
    def _coerce_tier(tier) -> BugCriticality:
        try:
            tier = BugCriticality(tier)
        except ValueError:
            raise InvalidTier(f"unknown tier {tier!r}")
        if not tier.is_paying:
            raise InvalidTier("tier NONE cannot be assigned")
        return tier

    # -----------------------------------------------------------------
    # DEVELOPER
    # -----------------------------------------------------------------

    def register_deployer(self, users: Sequence[str]) -> int:
        """Whitelist deployers. Returns the whitelist size afterwards."""
        if not users:
            raise EmptyBatch("deployer batch is empty")

        seen: Set[str] = set()
        for user in users:
            validate_address(user)
            if user in self._deployer_set or user in seen:
                raise AlreadyRegistered(f"{user} is already a whitelisted deployer")
            seen.add(user)

        before = len(self._deployers)

        def undo():
            self._deployer_set.difference_update(self._deployers[before:])
            del self._deployers[before:]

        self._undo.append(undo)
        self._deployers.extend(users)
        self._deployer_set.update(users)

        logger.info(f"DEPLOYERS_REGISTERED: +{len(users)} (total={len(self._deployers)})")
        return len(self._deployers)

    def is_deployer(self, user: str) -> bool:
        return user in self._deployer_set

    def deployers(self) -> List[str]:
        return list(self._deployers)

    # -----------------------------------------------------------------
    # DAPP ROUNDS
    # -----------------------------------------------------------------

    def register_dapp_round(self, users: Sequence[str],
                            uptime_flags: Sequence[bool]) -> int:
        """Open a new round with the given members. Returns the round id."""
        if len(users) != len(uptime_flags):
            raise LengthMismatch(
                f"{len(users)} users but {len(uptime_flags)} uptime flags"
            )
        if not users:
            raise EmptyBatch("dapp round batch is empty")

        seen: Set[str] = set()
        for user in users:
            validate_address(user)
            if user in seen:
                raise DuplicateInRound(f"{user} listed twice in round {self._round_id + 1}")
            seen.add(user)

        round_id = self._round_id + 1
        registrations_before = len(self._dapp_registrations)
        # Sticky: a False flag never clears an earlier True
        new_uptime = {u for u, good in zip(users, uptime_flags)
                      if good and u not in self._good_uptime}

        def undo():
            del self._round_members[round_id]
            for user in users:
                rounds = self._user_rounds[user]
                rounds.pop()
                if not rounds:
                    del self._user_rounds[user]
            del self._dapp_registrations[registrations_before:]
            self._good_uptime.difference_update(new_uptime)
            self._round_id = round_id - 1

        self._undo.append(undo)
        self._round_id = round_id
        self._round_members[round_id] = frozenset(users)
        for user in users:
            self._user_rounds.setdefault(user, []).append(round_id)
        self._dapp_registrations.extend(users)
        self._good_uptime.update(new_uptime)

        logger.info(f"DAPP_ROUND_OPENED: round={round_id} members={len(users)}")
        return round_id

    @property
    def current_round_id(self) -> int:
        return self._round_id

    def round_exists(self, round_id: int) -> bool:
        return round_id in self._round_members

    def is_round_member(self, user: str, round_id: int) -> bool:
        return user in self._round_members.get(round_id, ())

    def rounds_of(self, user: str) -> List[int]:
        return list(self._user_rounds.get(user, ()))

    def has_good_uptime(self, user: str) -> bool:
        return user in self._good_uptime

    def dapp_registrations(self) -> List[str]:
        """Raw registration list across all rounds. Repeats are kept."""
        return list(self._dapp_registrations)

    def dapp_members(self) -> List[str]:
        """Distinct dapp users in first-registration order."""
        return list(dict.fromkeys(self._dapp_registrations))

    # -----------------------------------------------------------------
    # SNAPSHOT
    # -----------------------------------------------------------------

    def snapshot(self) -> int:
        self._undo.clear()
        return 0

    def restore(self, mark: int) -> None:
        while len(self._undo) > mark:
            self._undo.pop()()

    # -----------------------------------------------------------------
    # PERSISTENCE
    # -----------------------------------------------------------------

    def export_state(self) -> dict:
        return {
            "tiers": {u: t.name for u, t in self._tiers.items()},
            "tier_rates": {t.name: r for t, r in self._tier_rates.items()},
            "tier_members": {t.name: list(m) for t, m in self._tier_members.items()},
            "assignment_epochs": dict(self._assignment_epochs),
            "deployers": list(self._deployers),
            "round_id": self._round_id,
            "rounds": {str(r): sorted(m) for r, m in self._round_members.items()},
            "dapp_registrations": list(self._dapp_registrations),
            "good_uptime": sorted(self._good_uptime),
        }

    def import_state(self, data: dict) -> None:
        """Replace every whitelist with a previously exported state."""
        self._reset()
        self._undo.clear()
        self._tiers = {u: BugCriticality[t] for u, t in data["tiers"].items()}
        self._tier_rates = {BugCriticality[t]: int(r) for t, r in data["tier_rates"].items()}
        for name, members in data["tier_members"].items():
            self._tier_members[BugCriticality[name]] = list(members)
        self._assignment_epochs = {u: int(e) for u, e in data["assignment_epochs"].items()}

        self._deployers = list(data["deployers"])
        self._deployer_set = set(self._deployers)

        for key in sorted(data["rounds"], key=int):
            round_id = int(key)
            self._round_members[round_id] = frozenset(data["rounds"][key])
            for user in data["rounds"][key]:
                self._user_rounds.setdefault(user, []).append(round_id)
        self._round_id = int(data["round_id"])
        if self._round_members and max(self._round_members) > self._round_id:
            raise ValueError(f"ROUND_COUNTER_BEHIND: {self._round_id}")
        self._dapp_registrations = list(data["dapp_registrations"])
        self._good_uptime = set(data["good_uptime"])

    def to_dict(self) -> dict:
        return {
            "tiers": {
                t.name: {
                    "members": len(self._tier_members[t]),
                    "per_user": self.tier_rate(t),
                }
                for t in self._tier_members
            },
            "deployers": len(self._deployers),
            "dapp_rounds": self._round_id,
            "dapp_registrations": len(self._dapp_registrations),
            "dapp_members": len(self.dapp_members()),
            "good_uptime": len(self._good_uptime),
        }


def tier_share(bug_bounty_allocation: int, tier_bps: int) -> int:
    """Token amount of the bug bounty pool reserved for one tier."""
    return bug_bounty_allocation * tier_bps // BPS_DENOMINATOR
