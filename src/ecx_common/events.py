"""Market notifications and the transaction-scoped event bus.

Notifications are best-effort and only leave the bus once the transaction
that produced them commits. An aborted transaction discards its buffer.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass

from src.ecx_common.enums import EventType, PriceUpdateReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketEvent:
    project_id: int

    @property
    def event_type(self) -> EventType:
        raise NotImplementedError

    def payload(self) -> dict[str, object]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, PriceUpdateReason):
                data[key] = value.value
        return data


@dataclass(frozen=True)
class PriceUpdated(MarketEvent):
    old_price: int
    new_price: int
    reason: PriceUpdateReason

    @property
    def event_type(self) -> EventType:
        return EventType.PRICE_UPDATED


@dataclass(frozen=True)
class VolatilityAlert(MarketEvent):
    change_ppt: int

    @property
    def event_type(self) -> EventType:
        return EventType.VOLATILITY_ALERT


@dataclass(frozen=True)
class BuyCredit(MarketEvent):
    buyer: str
    amount: int
    price: int
    total_cost: int

    @property
    def event_type(self) -> EventType:
        return EventType.BUY_CREDIT


@dataclass(frozen=True)
class ReturnCredits(MarketEvent):
    seller: str
    amount: int
    price: int
    collateral: int

    @property
    def event_type(self) -> EventType:
        return EventType.RETURN_CREDITS


@dataclass(frozen=True)
class ProjectValidated(MarketEvent):
    seller: str
    is_valid: bool

    @property
    def event_type(self) -> EventType:
        return EventType.PROJECT_VALIDATED


@dataclass(frozen=True)
class Penalty(MarketEvent):
    seller: str

    @property
    def event_type(self) -> EventType:
        return EventType.PENALTY


EventSubscriber = Callable[[list[MarketEvent]], Awaitable[None]]


class EventBus:
    """Buffers notifications emitted inside a transaction.

    The owner of the transaction drains the buffer on commit and discards it
    on abort; subscribers never see events from a rolled-back transaction.
    """

    def __init__(self) -> None:
        self._pending: list[MarketEvent] = []
        self._subscribers: list[EventSubscriber] = []

    @property
    def pending(self) -> list[MarketEvent]:
        return list(self._pending)

    def subscribe(self, subscriber: EventSubscriber) -> None:
        self._subscribers.append(subscriber)

    def emit(self, event: MarketEvent) -> None:
        self._pending.append(event)

    def mark(self) -> int:
        return len(self._pending)

    def discard(self, since: int = 0) -> None:
        """Drop events emitted after `since`; earlier ones stay pending."""
        dropped = len(self._pending) - since
        if dropped > 0:
            logger.debug("Discarding %d uncommitted events", dropped)
        del self._pending[since:]

    def drain(self) -> list[MarketEvent]:
        events, self._pending = self._pending, []
        return events

    async def publish(self, events: list[MarketEvent]) -> None:
        """Deliver committed events. A failing subscriber is logged, not raised."""
        if not events:
            return
        for subscriber in self._subscribers:
            try:
                await subscriber(events)
            except Exception:
                logger.exception("Event subscriber %r failed", subscriber)
