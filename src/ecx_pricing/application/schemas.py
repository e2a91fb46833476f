"""Pydantic read models returned by the market queries.

Raw integer amounts are kept alongside a human-readable display string
(whole native units) so callers never need to know the price scale.
"""

from pydantic import BaseModel

from config.settings import settings
from src.ecx_common.enums import PricingModel
from src.ecx_common.fixed_point import units_to_display
from src.ecx_pricing.domain.models import MarketConditions, PriceSample, ProjectPricing


class PricingInfoOut(BaseModel):
    project_id: int
    current_price: int
    current_price_display: str
    base_price: int
    min_price: int
    max_price: int
    model: PricingModel
    total_volume: int
    quality_score: int
    demand_score: int
    supply_score: int

    @classmethod
    def from_domain(cls, pricing: ProjectPricing) -> "PricingInfoOut":
        return cls(
            project_id=pricing.project_id,
            current_price=pricing.current_price,
            current_price_display=units_to_display(pricing.current_price, settings.BASE_PRICE),
            base_price=pricing.base_price,
            min_price=pricing.min_price,
            max_price=pricing.max_price,
            model=pricing.model,
            total_volume=pricing.total_volume,
            quality_score=pricing.quality_score,
            demand_score=pricing.demand_score,
            supply_score=pricing.supply_score,
        )


class MarketConditionsOut(BaseModel):
    demand: int
    supply: int
    volatility: int
    sentiment: int
    last_update: int

    @classmethod
    def from_domain(cls, conditions: MarketConditions) -> "MarketConditionsOut":
        return cls(
            demand=conditions.demand_multiplier,
            supply=conditions.supply_multiplier,
            volatility=conditions.volatility_index,
            sentiment=conditions.market_sentiment,
            last_update=conditions.last_update,
        )


class PriceImpactOut(BaseModel):
    impact_ppt: int
    projected_price: int


class PriceSampleOut(BaseModel):
    day: int
    volume: int
    price: int

    @classmethod
    def from_domain(cls, sample: PriceSample) -> "PriceSampleOut":
        return cls(day=sample.day, volume=sample.volume, price=sample.price)
