"""Global enums shared across pricing, ledger and market contexts."""

from enum import Enum, IntEnum


class PricingModel(IntEnum):
    """Closed set of pricing strategies. Values are the wire identifiers."""

    FIXED = 0
    SUPPLY_DEMAND = 1
    BONDING_CURVE = 2
    AUCTION = 3
    TWAP = 4
    QUALITY_ADJUSTED = 5


class ProjectState(str, Enum):
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"


class Role(str, Enum):
    ADMIN = "ADMIN"
    VALIDATOR = "VALIDATOR"
    COMPANY = "COMPANY"
    PAUSER = "PAUSER"
    PRICING_UPDATER = "PRICING_UPDATER"


class PriceUpdateReason(str, Enum):
    INITIALIZED = "INITIALIZED"
    TRADE = "TRADE"
    MODEL_CHANGED = "MODEL_CHANGED"
    QUALITY_UPDATED = "QUALITY_UPDATED"


class EventType(str, Enum):
    PRICE_UPDATED = "PRICE_UPDATED"
    VOLATILITY_ALERT = "VOLATILITY_ALERT"
    BUY_CREDIT = "BUY_CREDIT"
    RETURN_CREDITS = "RETURN_CREDITS"
    PROJECT_VALIDATED = "PROJECT_VALIDATED"
    PENALTY = "PENALTY"
