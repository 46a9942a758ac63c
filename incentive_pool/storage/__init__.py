from .state_store import EngineStateStore, STATE_VERSION

__all__ = ["EngineStateStore", "STATE_VERSION"]
