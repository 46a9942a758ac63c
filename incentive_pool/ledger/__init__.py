from .claim_ledger import ClaimLedger, DEFAULT_COOLDOWN_SECONDS
from .event_log import EventKind, EventLog
from .token_ledger import InMemoryTokenLedger, TokenLedger

__all__ = [
    "ClaimLedger",
    "DEFAULT_COOLDOWN_SECONDS",
    "EventKind",
    "EventLog",
    "InMemoryTokenLedger",
    "TokenLedger",
]
