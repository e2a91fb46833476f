"""Ledger timestamp utilities (unix seconds)."""

import time

SECONDS_PER_HOUR = 3_600
SECONDS_PER_DAY = 86_400
SECONDS_PER_WEEK = 604_800


def unix_now() -> int:
    """Ledger timestamp: whole seconds since the epoch."""
    return int(time.time())


def day_index(timestamp: int) -> int:
    """Day bucket used for daily volume/price samples."""
    return timestamp // SECONDS_PER_DAY
