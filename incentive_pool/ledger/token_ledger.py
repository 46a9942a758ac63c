"""
token_ledger.py — Value-transfer collaborator

The engine never moves balances itself. It talks to a TokenLedger:
  - total_supply()                 read once, at engine construction
  - transfer(sender, to, amount)   raises InsufficientPoolOrBalance on overdraft
  - balance_of(holder)             used by the emergency sweep

InMemoryTokenLedger is the reference implementation used by tests and by
local runs. It supports snapshot/restore so a failed engine transaction can
roll its transfers back as well.
"""

import copy
import logging
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

from incentive_pool.errors import InsufficientPoolOrBalance

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenLedger(Protocol):
    symbol: str

    def total_supply(self) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def balance_of(self, holder: str) -> int: ...


class InMemoryTokenLedger:
    """Fixed-supply token held in a dict of balances."""

    def __init__(self, symbol: str, total_supply: int, treasury: str,
                 on_transfer: Optional[Callable[[str, str, int], None]] = None):
        if total_supply < 0:
            raise ValueError(f"TOTAL_SUPPLY_NEGATIVE: {total_supply}")
        self.symbol = symbol
        self._total_supply = total_supply
        self._balances: Dict[str, int] = {treasury: total_supply}
        # Called after every successful transfer (recipient hooks)
        self.on_transfer = on_transfer

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"NEGATIVE_TRANSFER: {amount}")
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientPoolOrBalance(
                f"{self.symbol} balance of {sender} is {available}, needs {amount}"
            )
        self._balances[sender] = available - amount
        self._balances[to] = self.balance_of(to) + amount
        logger.debug(f"TRANSFER: {self.symbol} {sender} -> {to} amount={amount}")
        if self.on_transfer is not None:
            self.on_transfer(sender, to, amount)

    # --- Snapshot ---

    def snapshot(self) -> Dict[str, int]:
        return copy.copy(self._balances)

    def restore(self, balances: Dict[str, int]) -> None:
        self._balances = copy.copy(balances)
