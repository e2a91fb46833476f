"""SqlEventRecorder — EventBus subscriber that mirrors committed notifications."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ecx_common.events import MarketEvent
from src.ecx_market.infrastructure.event_log import write_market_events

logger = logging.getLogger(__name__)


class SqlEventRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, events: list[MarketEvent]) -> None:
        async with self._session_factory() as db:
            async with db.begin():
                written = await write_market_events(events, db)
        logger.debug("Recorded %d market events", written)
