"""
admin_guard.py — Admin capability and pause gate

The engine does not authenticate anyone. It asks an AdminCapability
whether a caller is privileged and rejects the whole call if not.

PauseGate is a plain boolean gate. While paused, every claim is rejected.
Registration and admin operations are not affected.
"""

import logging
from typing import Iterable, Protocol, runtime_checkable

from incentive_pool.errors import NotAuthorized, Paused

logger = logging.getLogger(__name__)


@runtime_checkable
class AdminCapability(Protocol):
    def is_privileged(self, caller: str) -> bool: ...


class AdminGuard:
    """Fixed set of privileged addresses."""

    def __init__(self, admins: Iterable[str]):
        self._admins = frozenset(admins)
        if not self._admins:
            raise ValueError("ADMIN_SET_EMPTY: at least one admin required")

    def is_privileged(self, caller: str) -> bool:
        return caller in self._admins

    @property
    def admins(self) -> frozenset:
        return self._admins


def require_privileged(capability: AdminCapability, caller: str, action: str) -> None:
    """Reject the call outright unless caller is privileged."""
    if not capability.is_privileged(caller):
        logger.warning(f"ADMIN_REJECTED: {caller!r} attempted {action}")
        raise NotAuthorized(f"{caller!r} may not {action}")


class PauseGate:
    """Boolean gate in front of every claim."""

    def __init__(self, paused: bool = False):
        self._paused = paused

    @property
    def is_paused(self) -> bool:
        return self._paused

    def pause(self) -> bool:
        """Returns True if the state changed."""
        changed = not self._paused
        self._paused = True
        return changed

    def unpause(self) -> bool:
        changed = self._paused
        self._paused = False
        return changed

    def require_open(self) -> None:
        if self._paused:
            raise Paused("claims are paused")

    def snapshot(self) -> bool:
        return self._paused

    def restore(self, paused: bool) -> None:
        self._paused = paused
