"""PricingEngine — per-project pricing records and the trade-driven price updates.

Reads:
  - MarketConditionsStore (global multipliers, versioned)
  - ProjectLedger supply/sold counters (post-trade state)

Writes (privileged, caller passed explicitly):
  - initialize / change_model / update_quality / update_market_conditions: ADMIN
  - record_trade: PRICING_UPDATER (the market engine's identity)

Every mutation leaves min_price <= current_price <= max_price and emits
PriceUpdated (and VolatilityAlert for >10% moves) onto the event bus.
"""
import copy
import logging
from collections.abc import Callable
from typing import Any

from config.settings import settings
from src.ecx_common.datetime_utils import day_index, unix_now
from src.ecx_common.enums import PricingModel, PriceUpdateReason, Role
from src.ecx_common.errors import (
    PricingAlreadyInitializedError,
    PricingNotInitializedError,
    QualityScoreOutOfRangeError,
)
from src.ecx_common.events import EventBus, PriceUpdated, VolatilityAlert
from src.ecx_common.fixed_point import PPT, apply_ppt, checked_add, clamp, mul_div, ppt_change
from src.ecx_ledger.domain.protocols import AuthorizationProtocol, ProjectLedgerProtocol
from src.ecx_pricing.domain.conditions import MarketConditionsStore
from src.ecx_pricing.domain.models import (
    SCORE_MAX,
    LedgerView,
    MarketConditions,
    PriceSample,
    PricingState,
    ProjectPricing,
)
from src.ecx_pricing.domain.strategies import (
    bonding_curve_price,
    get_strategy,
    new_bonding_curve,
    parse_model,
    quality_adjust,
    time_decay,
)

logger = logging.getLogger(__name__)

VOLATILITY_THRESHOLD_PPT = 100
MAX_IMPACT_PPT = 500
BUY_DEMAND_NUDGE, BUY_SUPPLY_NUDGE = 50, -25
SELL_DEMAND_NUDGE, SELL_SUPPLY_NUDGE = -50, 25


class PricingEngine:
    def __init__(
        self,
        projects: ProjectLedgerProtocol,
        auth: AuthorizationProtocol,
        conditions: MarketConditionsStore,
        events: EventBus,
        base_price: int | None = None,
        clock: Callable[[], int] = unix_now,
    ) -> None:
        self._projects = projects
        self._auth = auth
        self._conditions = conditions
        self._events = events
        self._base_price = base_price if base_price is not None else settings.BASE_PRICE
        self._clock = clock
        self._pricing: dict[int, ProjectPricing] = {}
        self._samples: dict[int, dict[int, PriceSample]] = {}

    @property
    def base_price(self) -> int:
        return self._base_price

    # ------------------------------------------------------------------
    # Admin mutators
    # ------------------------------------------------------------------

    def initialize(
        self, caller: str, project_id: int, model: PricingModel | int, quality_score: int
    ) -> ProjectPricing:
        self._auth.require_role(Role.ADMIN, caller)
        model = parse_model(model)
        _check_quality(quality_score)
        if project_id in self._pricing:
            raise PricingAlreadyInitializedError(project_id)

        base = quality_adjust(self._base_price, quality_score)
        pricing = ProjectPricing(
            project_id=project_id,
            base_price=base,
            current_price=base,
            min_price=base // 10,
            max_price=base * 10,
            model=model,
            quality_score=quality_score,
            last_trade_time=self._clock(),
        )
        if model == PricingModel.BONDING_CURVE:
            pricing.bonding_curve = new_bonding_curve(base)
        self._pricing[project_id] = pricing
        self._emit_change(project_id, 0, base, PriceUpdateReason.INITIALIZED)
        logger.info(
            "Pricing initialized: project=%d model=%s quality=%d base=%d",
            project_id,
            model.name,
            quality_score,
            base,
        )
        return pricing

    def update_market_conditions(
        self,
        caller: str,
        demand_multiplier: int,
        supply_multiplier: int,
        volatility_index: int,
        market_sentiment: int,
    ) -> MarketConditions:
        self._auth.require_role(Role.ADMIN, caller)
        return self._conditions.update(
            demand_multiplier,
            supply_multiplier,
            volatility_index,
            market_sentiment,
            now=self._clock(),
        )

    def change_model(self, caller: str, project_id: int, model: PricingModel | int) -> int:
        self._auth.require_role(Role.ADMIN, caller)
        model = parse_model(model)
        pricing = self._require(project_id)
        pricing.model = model
        if model == PricingModel.BONDING_CURVE and pricing.bonding_curve is None:
            pricing.bonding_curve = new_bonding_curve(pricing.base_price)
        logger.info("Pricing model changed: project=%d model=%s", project_id, model.name)
        return self._refresh(pricing, PriceUpdateReason.MODEL_CHANGED)

    def update_quality(self, caller: str, project_id: int, quality_score: int) -> int:
        self._auth.require_role(Role.ADMIN, caller)
        _check_quality(quality_score)
        pricing = self._require(project_id)
        pricing.quality_score = quality_score
        logger.info("Quality updated: project=%d quality=%d", project_id, quality_score)
        return self._refresh(pricing, PriceUpdateReason.QUALITY_UPDATED)

    # ------------------------------------------------------------------
    # Trade recording
    # ------------------------------------------------------------------

    def record_trade(self, caller: str, project_id: int, amount: int, is_buy: bool) -> int:
        """Apply one settled trade. Ledger counters must already reflect it."""
        self._auth.require_role(Role.PRICING_UPDATER, caller)
        pricing = self._require(project_id)
        now = self._clock()
        old_price = pricing.current_price

        pricing.total_volume = checked_add(pricing.total_volume, amount)
        pricing.last_trade_time = now
        if is_buy:
            _nudge(pricing, BUY_DEMAND_NUDGE, BUY_SUPPLY_NUDGE)
        else:
            _nudge(pricing, SELL_DEMAND_NUDGE, SELL_SUPPLY_NUDGE)

        strategy = get_strategy(pricing.model)
        new_price = strategy.on_trade(self._state(pricing), self._conditions.current())
        pricing.current_price = new_price

        sample = self._samples.setdefault(project_id, {}).setdefault(
            day_index(now), PriceSample(day=day_index(now))
        )
        sample.volume = checked_add(sample.volume, amount)
        sample.price = new_price

        self._emit_change(project_id, old_price, new_price, PriceUpdateReason.TRADE)
        logger.debug(
            "Trade recorded: project=%d amount=%d buy=%s price=%d->%d",
            project_id,
            amount,
            is_buy,
            old_price,
            new_price,
        )
        return new_price

    # ------------------------------------------------------------------
    # Queries (no side effects)
    # ------------------------------------------------------------------

    def is_initialized(self, project_id: int) -> bool:
        return project_id in self._pricing

    def current_price(self, project_id: int) -> int:
        pricing = self._pricing.get(project_id)
        if pricing is None:
            return self._base_price
        return get_strategy(pricing.model).price(self._state(pricing), self._conditions.current())

    def pricing_info(self, project_id: int) -> ProjectPricing:
        pricing = copy.deepcopy(self._require(project_id))
        pricing.current_price = self.current_price(project_id)
        return pricing

    def market_conditions(self) -> MarketConditions:
        return self._conditions.current()

    def price_impact(self, project_id: int, amount: int, is_buy: bool) -> tuple[int, int]:
        """Returns (impact_ppt, projected_price) for a hypothetical trade."""
        current = self.current_price(project_id)
        if amount == 0:
            return 0, current

        ledger = self._ledger_view(project_id)
        if is_buy:
            impact = mul_div(amount, PPT, ledger.available + 1)
        else:
            impact = mul_div(amount, PPT, ledger.sold + 1)
        impact = min(impact, MAX_IMPACT_PPT)

        delta = apply_ppt(current, impact)
        projected = current + delta if is_buy else current - delta
        low, high = self._bounds(project_id)
        return impact, clamp(projected, low, high)

    def time_decay(self, timestamp: int) -> int:
        return time_decay(timestamp, self._clock())

    def bonding_curve_price(self, project_id: int) -> int:
        pricing = self._require(project_id)
        return bonding_curve_price(pricing, self._ledger_view(project_id).sold)

    def price_history(self, project_id: int) -> list[PriceSample]:
        samples = self._samples.get(project_id, {})
        return [copy.copy(samples[day]) for day in sorted(samples)]

    # ------------------------------------------------------------------
    # Snapshotable
    # ------------------------------------------------------------------

    def snapshot(self) -> Any:
        return copy.deepcopy((self._pricing, self._samples))

    def restore(self, state: Any) -> None:
        self._pricing, self._samples = state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, project_id: int) -> ProjectPricing:
        pricing = self._pricing.get(project_id)
        if pricing is None:
            raise PricingNotInitializedError(project_id)
        return pricing

    def _ledger_view(self, project_id: int) -> LedgerView:
        if not self._projects.exists(project_id):
            return LedgerView(supply=0, sold=0)
        return LedgerView(
            supply=self._projects.supply(project_id), sold=self._projects.sold(project_id)
        )

    def _state(self, pricing: ProjectPricing) -> PricingState:
        return PricingState(
            pricing=pricing, ledger=self._ledger_view(pricing.project_id), now=self._clock()
        )

    def _bounds(self, project_id: int) -> tuple[int, int]:
        pricing = self._pricing.get(project_id)
        if pricing is None:
            return self._base_price // 10, self._base_price * 10
        return pricing.min_price, pricing.max_price

    def _refresh(self, pricing: ProjectPricing, reason: PriceUpdateReason) -> int:
        old_price = pricing.current_price
        strategy = get_strategy(pricing.model)
        pricing.current_price = strategy.refresh(
            self._state(pricing), self._conditions.current()
        )
        self._emit_change(pricing.project_id, old_price, pricing.current_price, reason)
        return pricing.current_price

    def _emit_change(
        self, project_id: int, old_price: int, new_price: int, reason: PriceUpdateReason
    ) -> None:
        if old_price == new_price:
            return
        self._events.emit(PriceUpdated(project_id, old_price, new_price, reason))
        change = ppt_change(old_price, new_price)
        if change > VOLATILITY_THRESHOLD_PPT:
            self._events.emit(VolatilityAlert(project_id, change))
            logger.warning(
                "Volatility alert: project=%d change=%d ppt (%d -> %d)",
                project_id,
                change,
                old_price,
                new_price,
            )


def _check_quality(quality_score: int) -> None:
    if not 0 <= quality_score <= SCORE_MAX:
        raise QualityScoreOutOfRangeError(quality_score)


def _nudge(pricing: ProjectPricing, demand_delta: int, supply_delta: int) -> None:
    pricing.demand_score = clamp(pricing.demand_score + demand_delta, 0, SCORE_MAX)
    pricing.supply_score = clamp(pricing.supply_score + supply_delta, 0, SCORE_MAX)
