from .reward_config import RewardConfig, ENV_PREFIX, SECONDS_PER_DAY

__all__ = ["RewardConfig", "ENV_PREFIX", "SECONDS_PER_DAY"]
