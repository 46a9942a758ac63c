"""
mode_controller.py — PRE_LAUNCH / LIVE Mode Controller

Rules:
  - PRE_LAUNCH blocks every user claim
  - PRE_LAUNCH -> LIVE is the only transition
  - The launch distribution runs exactly once, guarded by a monotonic
    'distributed' flag kept apart from the mode itself
  - Registration is not mode-restricted

Durability lives with the engine's state store, which saves the exported
mode together with pools, registry and claim records.
"""

import logging
from typing import Callable, Optional

from incentive_pool.errors import ModeNotLive
from incentive_pool.types import LaunchMode

logger = logging.getLogger("incentive_pool.mode")


class ModeController:
    """Two-state launch gate."""

    def __init__(self):
        self._mode = LaunchMode.PRE_LAUNCH
        self._distributed = False

    # --- State ---

    @property
    def mode(self) -> LaunchMode:
        return self._mode

    @property
    def mode_name(self) -> str:
        return self._mode.name

    @property
    def is_live(self) -> bool:
        return self._mode == LaunchMode.LIVE

    @property
    def distributed(self) -> bool:
        return self._distributed

    def require_live(self) -> None:
        if self._mode != LaunchMode.LIVE:
            raise ModeNotLive(f"claims open at launch (current: {self.mode_name})")

    # --- Transitions ---

    def set_live(self, on_first_launch: Optional[Callable[[], None]] = None) -> dict:
        """Enter LIVE. Runs on_first_launch only on the first transition."""
        if self._mode == LaunchMode.LIVE:
            logger.info("MODE_TRANSITION_SKIPPED: already LIVE")
            return {"mode": self.mode_name, "allowed": False, "reason": "ALREADY_LIVE"}

        self._mode = LaunchMode.LIVE
        launched = False
        if not self._distributed:
            self._distributed = True
            if on_first_launch is not None:
                on_first_launch()
            launched = True

        logger.info("MODE_TRANSITION: PRE_LAUNCH -> LIVE")
        return {
            "mode": self.mode_name,
            "allowed": True,
            "reason": "MODE_TRANSITION: PRE_LAUNCH -> LIVE",
            "distributed": launched,
        }

    # --- Transaction hooks ---

    def snapshot(self) -> tuple:
        return self._mode, self._distributed

    def restore(self, state: tuple) -> None:
        self._mode, self._distributed = state

    # --- Persistence ---

    def export_state(self) -> dict:
        return {
            "mode": int(self._mode),
            "mode_name": self._mode.name,
            "distributed": self._distributed,
        }

    def import_state(self, data: dict) -> None:
        mode = LaunchMode(data["mode"])
        distributed = data["distributed"]
        if not isinstance(distributed, bool):
            raise ValueError(f"DISTRIBUTED_FLAG_INVALID: {distributed!r}")
        if distributed and mode != LaunchMode.LIVE:
            raise ValueError("DISTRIBUTED_BEFORE_LIVE")
        self._mode, self._distributed = mode, distributed
        logger.info(f"MODE_RESTORED: {self.mode_name} distributed={distributed}")
