"""MarketConditionsStore — versioned holder of the global market multipliers.

The value itself is immutable; update() validates and swaps it under the
store's lock and bumps the version. Readers always get a whole snapshot.
"""
import logging
import threading
from dataclasses import replace
from typing import Any

from src.ecx_common.errors import MarketConditionOutOfRangeError
from src.ecx_pricing.domain.models import MarketConditions

logger = logging.getLogger(__name__)

MULTIPLIER_RANGE = (500, 2000)
VOLATILITY_RANGE = (0, 1000)
SENTIMENT_RANGE = (0, 2000)


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise MarketConditionOutOfRangeError(name, value, low, high)


class MarketConditionsStore:
    def __init__(self, initial: MarketConditions | None = None) -> None:
        self._lock = threading.Lock()
        self._value = initial or MarketConditions()
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def current(self) -> MarketConditions:
        with self._lock:
            return self._value

    def update(
        self,
        demand_multiplier: int,
        supply_multiplier: int,
        volatility_index: int,
        market_sentiment: int,
        now: int,
    ) -> MarketConditions:
        _check_range("demand multiplier", demand_multiplier, MULTIPLIER_RANGE)
        _check_range("supply multiplier", supply_multiplier, MULTIPLIER_RANGE)
        _check_range("volatility index", volatility_index, VOLATILITY_RANGE)
        _check_range("market sentiment", market_sentiment, SENTIMENT_RANGE)
        with self._lock:
            self._value = replace(
                self._value,
                demand_multiplier=demand_multiplier,
                supply_multiplier=supply_multiplier,
                volatility_index=volatility_index,
                market_sentiment=market_sentiment,
                last_update=now,
            )
            self._version += 1
            value = self._value
        logger.info(
            "Market conditions updated: v=%d demand=%d supply=%d volatility=%d sentiment=%d",
            self._version,
            demand_multiplier,
            supply_multiplier,
            volatility_index,
            market_sentiment,
        )
        return value

    def snapshot(self) -> Any:
        with self._lock:
            return self._value, self._version

    def restore(self, state: Any) -> None:
        with self._lock:
            self._value, self._version = state
