"""NativeBank — native-currency balances used for collateral, payment and payouts.

Recipient code is modelled as an async hook registered per address; it runs
every time the address receives a payment and may call back into the market.
"""
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from src.ecx_common.errors import InsufficientBalanceError, InvalidAddressError

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[int], Awaitable[None]]


class NativeBank:
    def __init__(self) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._receivers: dict[str, ReceiveHook] = {}

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def deposit(self, address: str, amount: int) -> None:
        """External funding of an account."""
        if not address:
            raise InvalidAddressError()
        self._balances[address] += amount

    def debit(self, address: str, amount: int) -> None:
        available = self.balance_of(address)
        if available < amount:
            raise InsufficientBalanceError(address, amount, available)
        self._balances[address] -= amount

    def credit(self, address: str, amount: int) -> None:
        self._balances[address] += amount

    def register_receiver(self, address: str, hook: ReceiveHook) -> None:
        self._receivers[address] = hook

    def receiver(self, address: str) -> ReceiveHook | None:
        return self._receivers.get(address)

    def snapshot(self) -> Any:
        return dict(self._balances)

    def restore(self, state: Any) -> None:
        self._balances = defaultdict(int, state)
