"""
claim_ledger.py — Per-user claim records

Three record shapes:
  - one-shot:  (user, kind, epoch) -> claimed flag
  - round:     (user, round_id)    -> claimed flag
  - cooldown:  user                -> last successful claim timestamp

Records are created on first claim and never deleted.
Every try_consume_* call is check-and-set: it either raises or marks.
"""

from typing import Callable, Dict, List, Optional, Set, Tuple

from incentive_pool.config.reward_config import DEFAULT_COOLDOWN_DAYS, SECONDS_PER_DAY
from incentive_pool.errors import AlreadyClaimed, CooldownActive
from incentive_pool.types import ClaimKind

DEFAULT_COOLDOWN_SECONDS = DEFAULT_COOLDOWN_DAYS * SECONDS_PER_DAY


class ClaimLedger:
    """Check-and-set claim bookkeeping. No retries, no deletion."""

    def __init__(self):
        self._one_shot: Set[Tuple[str, ClaimKind, int]] = set()
        self._rounds: Set[Tuple[str, int]] = set()
        self._last_claim: Dict[str, float] = {}
        self._undo: List[Callable[[], None]] = []

    # --- One-shot ---

    def is_one_shot_consumed(self, user: str, kind: ClaimKind, epoch: int = 0) -> bool:
        return (user, kind, epoch) in self._one_shot

    def try_consume_one_shot(self, user: str, kind: ClaimKind, epoch: int = 0) -> None:
        key = (user, ClaimKind(kind), epoch)
        if key in self._one_shot:
            raise AlreadyClaimed(f"{user} already claimed {key[1].value}")
        self._one_shot.add(key)
        self._undo.append(lambda: self._one_shot.discard(key))

    # --- Rounds ---

    def is_round_consumed(self, user: str, round_id: int) -> bool:
        return (user, round_id) in self._rounds

    def try_consume_round(self, user: str, round_id: int) -> None:
        key = (user, round_id)
        if key in self._rounds:
            raise AlreadyClaimed(f"{user} already claimed dapp round {round_id}")
        self._rounds.add(key)
        self._undo.append(lambda: self._rounds.discard(key))

    # --- Cooldown ---

    def last_claim_at(self, user: str) -> Optional[float]:
        return self._last_claim.get(user)

    def cooldown_remaining(self, user: str, now: float,
                           period: float = DEFAULT_COOLDOWN_SECONDS) -> float:
        """Seconds until the next claim is allowed. 0 when claimable."""
        last = self._last_claim.get(user)
        if last is None:
            return 0.0
        return max(0.0, last + period - now)

    def try_consume_cooldown(self, user: str, now: float,
                             period: float = DEFAULT_COOLDOWN_SECONDS) -> None:
        wait = self.cooldown_remaining(user, now, period)
        if wait > 0:
            raise CooldownActive(f"{user} may claim again in {wait:.0f}s")
        previous = self._last_claim.get(user)

        def undo():
            if previous is None:
                self._last_claim.pop(user, None)
            else:
                self._last_claim[user] = previous

        self._undo.append(undo)
        self._last_claim[user] = now

    # --- Snapshot (undo log, latest mark only) ---

    def snapshot(self) -> int:
        self._undo.clear()
        return 0

    def restore(self, mark: int) -> None:
        while len(self._undo) > mark:
            self._undo.pop()()

    # --- Persistence ---

    def export_state(self) -> dict:
        return {
            "one_shot": sorted([u, k.value, e] for u, k, e in self._one_shot),
            "rounds": sorted([u, r] for u, r in self._rounds),
            "last_claim": dict(self._last_claim),
        }

    def import_state(self, data: dict) -> None:
        self._one_shot = {(u, ClaimKind(k), int(e)) for u, k, e in data["one_shot"]}
        self._rounds = {(u, int(r)) for u, r in data["rounds"]}
        self._last_claim = {u: float(t) for u, t in data["last_claim"].items()}
        self._undo.clear()

    def to_dict(self) -> dict:
        return {
            "one_shot_claims": len(self._one_shot),
            "round_claims": len(self._rounds),
            "cooldown_claimants": len(self._last_claim),
        }
