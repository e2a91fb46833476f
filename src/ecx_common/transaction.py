"""All-or-nothing transactions over in-memory ledger stores.

Each mutable store exposes snapshot()/restore(). A transaction snapshots every
participant up front; if the body raises, all participants are restored and
the notifications buffered by the body are discarded before the error
propagates. Events already pending when the transaction opened are kept.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Protocol

from src.ecx_common.events import EventBus

logger = logging.getLogger(__name__)


class Snapshotable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


@contextmanager
def atomic(participants: Sequence[Snapshotable], events: EventBus) -> Iterator[None]:
    snapshots = [p.snapshot() for p in participants]
    mark = events.mark()
    try:
        yield
    except BaseException:
        for participant, state in zip(participants, snapshots):
            participant.restore(state)
        events.discard(mark)
        logger.debug("Transaction rolled back across %d stores", len(participants))
        raise
