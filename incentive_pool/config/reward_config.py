"""
Incentive Pool Reward Configuration

Pool shares, tier shares and fixed reward amounts. All shares are basis
points (1/10_000). Values are fixed for the lifetime of an engine; a new
configuration means a new engine.

Environment overrides use the INCENTIVE_POOL_<FIELD> naming, e.g.
INCENTIVE_POOL_MONTHLY_DAPP_REWARD=1500. Bad values fail fast.
"""

import os
import logging
from dataclasses import dataclass, fields, replace
from typing import Dict, List, Mapping, Optional

from incentive_pool.types import BPS_DENOMINATOR, BugCriticality, PoolKind

logger = logging.getLogger("incentive_pool.config")

ENV_PREFIX = "INCENTIVE_POOL_"
SECONDS_PER_DAY = 86_400
DEFAULT_COOLDOWN_DAYS = 30


# =============================================================================
# CONFIG
# =============================================================================

@dataclass(frozen=True)
class RewardConfig:
    # Pool shares of total supply
    bug_bounty_bps: int = 3000
    dapp_bps: int = 4000
    developer_bps: int = 3000

    # Tier shares of the bug bounty pool
    low_bps: int = 500
    medium_bps: int = 1500
    high_bps: int = 3000

    # Fixed per-claim amounts (smallest token units)
    monthly_dapp_reward: int = 1_000
    uptime_bonus: int = 200
    developer_deployment_reward: int = 2_500

    cooldown_seconds: int = DEFAULT_COOLDOWN_DAYS * SECONDS_PER_DAY

    # Share of each recurring pool handed out by the launch push
    launch_distribution_bps: int = BPS_DENOMINATOR

    def pool_bps(self) -> Dict[PoolKind, int]:
        return {
            PoolKind.BUG_BOUNTY: self.bug_bounty_bps,
            PoolKind.DAPP: self.dapp_bps,
            PoolKind.DEVELOPER: self.developer_bps,
        }

    def tier_bps(self, tier: BugCriticality) -> int:
        if tier == BugCriticality.LOW:
            return self.low_bps
        if tier == BugCriticality.MEDIUM:
            return self.medium_bps
        if tier == BugCriticality.HIGH:
            return self.high_bps
        raise ValueError(f"TIER_HAS_NO_SHARE: {tier.name}")

    def validate(self) -> List[str]:
        """Return a list of problems. Empty list means the config is usable."""
        errors: List[str] = []

        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                errors.append(f"{f.name} must be >= 0 (got {value})")

        pool_total = sum(self.pool_bps().values())
        if pool_total > BPS_DENOMINATOR:
            errors.append(f"pool shares sum to {pool_total} bps (max {BPS_DENOMINATOR})")

        tier_total = self.low_bps + self.medium_bps + self.high_bps
        if tier_total > BPS_DENOMINATOR:
            errors.append(f"tier shares sum to {tier_total} bps (max {BPS_DENOMINATOR})")

        if self.launch_distribution_bps > BPS_DENOMINATOR:
            errors.append(
                f"launch_distribution_bps is {self.launch_distribution_bps} "
                f"(max {BPS_DENOMINATOR})"
            )
        return errors

    def ensure_valid(self) -> "RewardConfig":
        errors = self.validate()
        if errors:
            for e in errors:
                logger.error(f"CONFIG_INVALID: {e}")
            raise ValueError(f"CONFIG_INVALID: {'; '.join(errors)}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RewardConfig":
        """Build a config from defaults overridden by INCENTIVE_POOL_* variables."""
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key, "")
            if not raw:
                continue
            try:
                overrides[f.name] = int(raw.replace("_", ""))
            except ValueError:
                raise ValueError(f"CONFIG_INVALID: {key}='{raw}' is not an integer")
            logger.info(f"CONFIG_OVERRIDE: {f.name}={overrides[f.name]}")
        return replace(cls(), **overrides).ensure_valid()
