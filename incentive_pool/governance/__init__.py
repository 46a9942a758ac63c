from .admin_guard import AdminCapability, AdminGuard, PauseGate, require_privileged
from .mode_controller import ModeController
from .transaction_guard import TransactionGuard

__all__ = [
    "AdminCapability",
    "AdminGuard",
    "ModeController",
    "PauseGate",
    "TransactionGuard",
    "require_privileged",
]
