from src.ecx_common.enums import PricingModel
from src.ecx_pricing.application.schemas import (
    MarketConditionsOut,
    PriceSampleOut,
    PricingInfoOut,
)
from src.ecx_pricing.domain.models import MarketConditions, PriceSample, ProjectPricing


def test_pricing_info_from_domain() -> None:
    pricing = ProjectPricing(
        project_id=3,
        base_price=10**18,
        current_price=15 * 10**17,
        min_price=10**17,
        max_price=10**19,
        model=PricingModel.TWAP,
        quality_score=500,
    )
    out = PricingInfoOut.from_domain(pricing)
    assert out.current_price == 15 * 10**17
    assert out.current_price_display == "1.5"
    assert out.model is PricingModel.TWAP
    assert (out.demand_score, out.supply_score) == (500, 500)
    assert out.model_dump()["model"] == 4


def test_market_conditions_from_domain() -> None:
    out = MarketConditionsOut.from_domain(MarketConditions(1200, 800, 200, 1500, 99))
    assert out.model_dump() == {
        "demand": 1200,
        "supply": 800,
        "volatility": 200,
        "sentiment": 1500,
        "last_update": 99,
    }


def test_price_sample() -> None:
    out = PriceSampleOut.from_domain(PriceSample(day=19_000, volume=5, price=7))
    assert (out.day, out.volume, out.price) == (19_000, 5, 7)
