"""
STATE STORE — Durable Engine State
==================================
Rules:
  - One JSON document holds every durable component: mode, pause gate,
    pool claimed totals, registry and claim records
  - Written only from a transaction commit hook (tmp file + fsync +
    atomic replace), so the file always matches a committed transaction
  - Missing file = fresh engine
  - Present but unreadable file = FATAL (StateCorruptError). The engine
    never starts from a blank PRE_LAUNCH state over a lost file.
==================================
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from incentive_pool.errors import StateCorruptError

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class EngineStateStore:
    """Atomic JSON file for the engine's committed state."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._saves = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def saves(self) -> int:
        return self._saves

    def load(self) -> Optional[dict]:
        """Return the stored state, or None when no file exists yet."""
        if not self._path.exists():
            return None
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"STATE_UNREADABLE: {self._path}: {e}")
            raise StateCorruptError(f"STATE_UNREADABLE: {self._path}: {e}") from e
        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            logger.error(f"STATE_VERSION_UNSUPPORTED: {self._path}")
            raise StateCorruptError(f"STATE_VERSION_UNSUPPORTED: {self._path}")
        return data

    def save(self, state: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w") as f:
            json.dump(dict(state, version=STATE_VERSION), f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(self._path)
        self._saves += 1
        logger.debug(f"STATE_SAVED: {self._path}")
