from dataclasses import dataclass

from src.ecx_common.enums import PricingModel

SCORE_MAX = 1000
NEUTRAL_SCORE = 500


@dataclass(frozen=True)
class MarketConditions:
    """Process-wide multipliers read by every price computation (PPT)."""

    demand_multiplier: int = 1000  # [500, 2000]
    supply_multiplier: int = 1000  # [500, 2000]
    volatility_index: int = 100  # [0, 1000]
    market_sentiment: int = 1000  # [0, 2000]
    last_update: int = 0


@dataclass
class BondingCurve:
    reserve_ratio: int
    slope: int
    intercept: int


@dataclass
class ProjectPricing:
    project_id: int
    base_price: int
    current_price: int
    min_price: int
    max_price: int
    model: PricingModel
    quality_score: int
    demand_score: int = NEUTRAL_SCORE
    supply_score: int = NEUTRAL_SCORE
    total_volume: int = 0
    last_trade_time: int = 0
    bonding_curve: BondingCurve | None = None


@dataclass
class PriceSample:
    """Per-(project, day) volume and closing price."""

    day: int
    volume: int = 0
    price: int = 0


@dataclass(frozen=True)
class LedgerView:
    """Counters a strategy reads from the project ledger."""

    supply: int
    sold: int

    @property
    def available(self) -> int:
        return max(self.supply - self.sold, 0)


@dataclass
class PricingState:
    """Everything one strategy evaluation needs for a single project."""

    pricing: ProjectPricing
    ledger: LedgerView
    now: int
