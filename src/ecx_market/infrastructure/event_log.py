"""DB helper for market_events (append-only notification log)."""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ecx_common.events import MarketEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO market_events (project_id, event_type, payload)
    VALUES (:project_id, :event_type, CAST(:payload AS JSONB))
""")


async def write_market_events(events: list[MarketEvent], db: AsyncSession) -> int:
    """Insert one row per committed event within the caller's transaction.

    Amounts are stored as JSON strings: ledger values exceed 64-bit range.
    """
    for event in events:
        payload = {
            key: str(value) if isinstance(value, int) and not isinstance(value, bool) else value
            for key, value in event.payload().items()
        }
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "project_id": event.project_id,
                "event_type": event.event_type.value,
                "payload": json.dumps(payload),
            },
        )
    return len(events)
