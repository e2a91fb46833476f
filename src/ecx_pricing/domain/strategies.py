"""Pricing strategies — one closed variant per PricingModel.

Each strategy answers three questions for a single project:
  price(state, conditions)     -> what current_price() reports right now
  on_trade(state, conditions)  -> the value stored after a recorded trade
  refresh(state, conditions)   -> the value stored after a model or quality change

All results are clamped to [min_price, max_price]. Strategies never mutate
the state they are given; the engine owns every write.
"""
from typing import Protocol

from src.ecx_common.datetime_utils import SECONDS_PER_DAY, SECONDS_PER_HOUR, SECONDS_PER_WEEK
from src.ecx_common.enums import PricingModel
from src.ecx_common.errors import InvalidPricingModelError
from src.ecx_common.fixed_point import (
    PPT,
    apply_ppt,
    checked_add,
    checked_mul,
    clamp,
    mul_div,
    trunc_div,
)
from src.ecx_pricing.domain.models import (
    BondingCurve,
    MarketConditions,
    PricingState,
    ProjectPricing,
)

BONDING_CURVE_SCALE = 1_000_000
DEFAULT_RESERVE_RATIO = 500
TWAP_STORED_WEIGHT = 700
TWAP_FRESH_WEIGHT = 300
QUALITY_BLEND_FLOOR = 900


def bounded(pricing: ProjectPricing, value: int) -> int:
    return clamp(value, pricing.min_price, pricing.max_price)


def quality_adjust(price: int, quality_score: int) -> int:
    """50% of price at quality 0, 150% at quality 1000."""
    return mul_div(price, 500 + quality_score, PPT)


def time_decay(last_trade_time: int, now: int) -> int:
    """Staleness factor in PPT: 1000 inside the first hour, linear to 950 at
    one day, linear to 900 at one week, 900 afterwards."""
    elapsed = max(now - last_trade_time, 0)
    if elapsed < SECONDS_PER_HOUR:
        return 1000
    if elapsed < SECONDS_PER_DAY:
        span = SECONDS_PER_DAY - SECONDS_PER_HOUR
        return 1000 - trunc_div(50 * (elapsed - SECONDS_PER_HOUR), span)
    if elapsed < SECONDS_PER_WEEK:
        span = SECONDS_PER_WEEK - SECONDS_PER_DAY
        return 950 - trunc_div(50 * (elapsed - SECONDS_PER_DAY), span)
    return 900


def supply_demand_price(state: PricingState, conditions: MarketConditions) -> int:
    pricing = state.pricing
    supply = state.ledger.supply
    if supply == 0:
        return bounded(pricing, pricing.base_price)

    supply_ratio = mul_div(state.ledger.available, PPT, supply)
    demand_pressure = PPT - supply_ratio
    price = apply_ppt(pricing.base_price, PPT + demand_pressure)
    price = apply_ppt(price, conditions.demand_multiplier)
    price = apply_ppt(price, QUALITY_BLEND_FLOOR + pricing.quality_score // 5)
    price = apply_ppt(price, time_decay(pricing.last_trade_time, state.now))
    return bounded(pricing, price)


def new_bonding_curve(base_price: int) -> BondingCurve:
    return BondingCurve(
        reserve_ratio=DEFAULT_RESERVE_RATIO, slope=base_price, intercept=base_price
    )


def bonding_curve_price(pricing: ProjectPricing, sold: int) -> int:
    curve = pricing.bonding_curve or new_bonding_curve(pricing.base_price)
    growth = trunc_div(checked_mul(curve.slope, checked_mul(sold, sold)), BONDING_CURVE_SCALE)
    return bounded(pricing, checked_add(curve.intercept, growth))


class PricingStrategy(Protocol):
    model: PricingModel

    def price(self, state: PricingState, conditions: MarketConditions) -> int: ...

    def on_trade(self, state: PricingState, conditions: MarketConditions) -> int: ...

    def refresh(self, state: PricingState, conditions: MarketConditions) -> int: ...


class _Strategy:
    """Default: the stored value after a trade or an admin change is just price()."""

    model: PricingModel

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        raise NotImplementedError

    def on_trade(self, state: PricingState, conditions: MarketConditions) -> int:
        return self.price(state, conditions)

    def refresh(self, state: PricingState, conditions: MarketConditions) -> int:
        return self.price(state, conditions)


class FixedStrategy(_Strategy):
    model = PricingModel.FIXED

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        return bounded(state.pricing, state.pricing.current_price)


class SupplyDemandStrategy(_Strategy):
    model = PricingModel.SUPPLY_DEMAND

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        # Always recomputed so condition updates and idle decay apply on read
        return supply_demand_price(state, conditions)


class BondingCurveStrategy(_Strategy):
    model = PricingModel.BONDING_CURVE

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        return bonding_curve_price(state.pricing, state.ledger.sold)


class AuctionStrategy(_Strategy):
    model = PricingModel.AUCTION

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        return bounded(state.pricing, state.pricing.current_price)

    def on_trade(self, state: PricingState, conditions: MarketConditions) -> int:
        pricing = state.pricing
        spread = trunc_div(pricing.demand_score - pricing.supply_score, 10)
        return bounded(pricing, mul_div(pricing.current_price, PPT + spread, PPT))


class TwapStrategy(_Strategy):
    model = PricingModel.TWAP

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        pricing = state.pricing
        fresh = supply_demand_price(state, conditions)
        blended = trunc_div(
            checked_add(
                checked_mul(TWAP_STORED_WEIGHT, pricing.current_price),
                checked_mul(TWAP_FRESH_WEIGHT, fresh),
            ),
            PPT,
        )
        return bounded(pricing, blended)


class QualityAdjustedStrategy(_Strategy):
    model = PricingModel.QUALITY_ADJUSTED

    def price(self, state: PricingState, conditions: MarketConditions) -> int:
        pricing = state.pricing
        return bounded(pricing, quality_adjust(pricing.base_price, pricing.quality_score))


STRATEGIES: dict[PricingModel, PricingStrategy] = {
    s.model: s
    for s in (
        FixedStrategy(),
        SupplyDemandStrategy(),
        BondingCurveStrategy(),
        AuctionStrategy(),
        TwapStrategy(),
        QualityAdjustedStrategy(),
    )
}


def parse_model(model: object) -> PricingModel:
    try:
        return PricingModel(model)
    except ValueError:
        raise InvalidPricingModelError(model) from None


def get_strategy(model: object) -> PricingStrategy:
    return STRATEGIES[parse_model(model)]
