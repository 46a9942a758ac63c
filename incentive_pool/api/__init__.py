from .reward_routes import create_app, reward_router

__all__ = ["create_app", "reward_router"]
