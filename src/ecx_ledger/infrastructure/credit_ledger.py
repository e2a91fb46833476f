"""InMemoryCreditLedger — fungible settlement credits (one credit per verified offset unit)."""
import logging
from collections import defaultdict
from typing import Any

from src.ecx_common.errors import InsufficientCreditsError, InvalidAddressError

logger = logging.getLogger(__name__)


class InMemoryCreditLedger:
    def __init__(self) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def mint(self, address: str, amount: int) -> None:
        if not address:
            raise InvalidAddressError()
        if amount <= 0:
            return
        self._balances[address] += amount
        self._total_supply += amount
        logger.debug("Minted %d credits to %s", amount, address)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if not recipient:
            raise InvalidAddressError()
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientCreditsError(sender, amount, available)
        self._balances[sender] -= amount
        self._balances[recipient] += amount

    def snapshot(self) -> Any:
        return dict(self._balances), self._total_supply

    def restore(self, state: Any) -> None:
        balances, total = state
        self._balances = defaultdict(int, balances)
        self._total_supply = total
