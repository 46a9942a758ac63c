"""
EVENT LOG — Append-Only Hash-Chained Reward Events
==================================================
Rules:
  - Informational only: the engine never reads events back
  - Entries never modified, only appended
  - Each entry links to the previous entry hash
  - Entries emitted inside a rolled-back transaction are dropped
  - File sink (JSONL) written only for committed entries, and rewound
    if a later step of the same commit fails
==================================================
"""

import hashlib
import json
import logging
import os
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64


class EventKind(str, Enum):
    WHITELIST_UPDATED = "WHITELIST_UPDATED"
    CLAIMED = "CLAIMED"
    CLAIM_AMOUNT_UPDATED = "CLAIM_AMOUNT_UPDATED"
    MODE_CHANGED = "MODE_CHANGED"
    PAUSE_CHANGED = "PAUSE_CHANGED"
    SWEPT = "SWEPT"


def _entry_hash(entry: dict) -> str:
    entry_data = json.dumps(
        {k: v for k, v in entry.items() if k != "entry_hash"},
        sort_keys=True
    )
    return hashlib.sha256(entry_data.encode()).hexdigest()


class EventLog:
    """Hash-chained event stream with an optional JSONL file sink."""

    def __init__(self, path: Optional[str] = None,
                 clock: Callable[[], float] = time.time):
        self._path = path
        self._clock = clock
        self._entries: List[dict] = []
        self._chain_hash = GENESIS_HASH
        self._persisted = 0

    # ---------------------------------------------------------
    # EMIT
    # ---------------------------------------------------------
    def emit(self, kind: EventKind, **payload) -> dict:
        entry = {
            "sequence": len(self._entries),
            "kind": EventKind(kind).value,
            "payload": payload,
            "prev_hash": self._chain_hash,
            "entry_hash": "",
            "emitted_at": self._clock(),
        }
        entry["entry_hash"] = _entry_hash(entry)
        self._chain_hash = entry["entry_hash"]
        self._entries.append(entry)
        logger.debug(f"EVENT: {entry['kind']} {payload}")
        return entry

    # ---------------------------------------------------------
    # QUERY
    # ---------------------------------------------------------
    @property
    def entries(self) -> List[dict]:
        return list(self._entries)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def chain_hash(self) -> str:
        return self._chain_hash

    def of_kind(self, kind: EventKind) -> List[dict]:
        kind = EventKind(kind).value
        return [e for e in self._entries if e["kind"] == kind]

    def verify_chain(self) -> bool:
        """Verify hash chain integrity. Returns False if tampered."""
        prev_hash = GENESIS_HASH
        for entry in self._entries:
            if entry["prev_hash"] != prev_hash:
                return False
            if _entry_hash(entry) != entry["entry_hash"]:
                return False
            prev_hash = entry["entry_hash"]
        return True

    # ---------------------------------------------------------
    # TRANSACTION HOOKS
    # ---------------------------------------------------------
    def snapshot(self) -> Tuple[int, str]:
        return len(self._entries), self._chain_hash

    def restore(self, state: Tuple[int, str]) -> None:
        count, chain_hash = state
        dropped = len(self._entries) - count
        del self._entries[count:]
        self._chain_hash = chain_hash
        if dropped:
            logger.debug(f"EVENTS_DROPPED: {dropped} uncommitted event(s)")
        if self._persisted > count:
            # A later commit step failed after the sink was written
            self._rewrite_sink()

    def _rewrite_sink(self) -> None:
        if self._path:
            tmp = f"{self._path}.tmp"
            with open(tmp, "w") as f:
                for entry in self._entries:
                    f.write(json.dumps(entry, sort_keys=True) + "\n")
            os.replace(tmp, self._path)
            logger.warning(
                f"EVENT_SINK_REWOUND: {self._persisted - len(self._entries)} entry(ies) removed"
            )
        self._persisted = len(self._entries)

    def commit(self) -> None:
        """Write entries not yet on disk to the JSONL sink."""
        pending = self._entries[self._persisted:]
        if self._path and pending:
            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            with open(self._path, "a") as f:
                for entry in pending:
                    f.write(json.dumps(entry, sort_keys=True) + "\n")
        self._persisted = len(self._entries)

    # ---------------------------------------------------------
    # PERSISTENCE
    # ---------------------------------------------------------
    def load(self) -> None:
        """Load an existing event file, replacing in-memory entries."""
        self._entries = []
        self._chain_hash = GENESIS_HASH
        if self._path and os.path.exists(self._path):
            with open(self._path, "r") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        entry = json.loads(line)
                        self._entries.append(entry)
                        self._chain_hash = entry["entry_hash"]
        self._persisted = len(self._entries)
