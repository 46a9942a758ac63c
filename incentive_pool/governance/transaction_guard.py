"""
transaction_guard.py — One transaction at a time, all-or-nothing

Every mutating engine call runs inside TransactionGuard.transaction():
  - a lock serialises transactions across threads
  - a nested call from the same thread (e.g. a transfer hook calling back
    into the engine) is rejected with REENTRANT_CALL
  - every participant is snapshotted on entry and restored if the body
    raises, so a failed call leaves no partial state
  - commit work (participant commit() hooks, then on_commit callbacks)
    runs inside the same rollback scope: a failed commit restores every
    snapshot and the caller sees the error
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Protocol, Sequence

from incentive_pool.errors import ReentrantCall

logger = logging.getLogger(__name__)


class Snapshotable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class TransactionGuard:

    def __init__(self, participants: Sequence[Snapshotable] = (),
                 on_commit: Sequence[Callable[[], None]] = ()):
        self._participants: List[Snapshotable] = list(participants)
        self._on_commit: List[Callable[[], None]] = list(on_commit)
        self._lock = threading.Lock()
        self._owner = None
        self._committed = 0
        self._rolled_back = 0

    def enlist(self, participant: Snapshotable) -> None:
        if participant not in self._participants:
            self._participants.append(participant)

    def add_commit_hook(self, hook: Callable[[], None]) -> None:
        self._on_commit.append(hook)

    @property
    def in_transaction(self) -> bool:
        return self._owner == threading.get_ident()

    @contextmanager
    def transaction(self, name: str) -> Iterator[None]:
        if self.in_transaction:
            logger.warning(f"REENTRANT_CALL_BLOCKED: {name}")
            raise ReentrantCall(f"{name} called while another transaction is open")

        with self._lock:
            self._owner = threading.get_ident()
            snapshots = [p.snapshot() for p in self._participants]
            try:
                yield
                self._commit()
            except BaseException as e:
                for participant, state in zip(self._participants, snapshots):
                    participant.restore(state)
                self._rolled_back += 1
                logger.info(f"TX_ROLLED_BACK: {name} ({type(e).__name__})")
                raise
            else:
                self._committed += 1
            finally:
                self._owner = None

    def _commit(self) -> None:
        for participant in self._participants:
            commit = getattr(participant, "commit", None)
            if commit is not None:
                commit()
        for hook in self._on_commit:
            hook()

    def stats(self) -> dict:
        return {"committed": self._committed, "rolled_back": self._rolled_back}
