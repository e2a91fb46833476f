"""Composition root: wires the exchange from settings.

    exchange = build_exchange()
    await exchange.market.sell("company-1", 100, project_id, collateral=...)
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass

from config.settings import settings
from src.ecx_common.database import get_session_factory
from src.ecx_common.datetime_utils import unix_now
from src.ecx_common.enums import Role
from src.ecx_common.events import EventBus
from src.ecx_ledger.infrastructure.authorization import AuthorizationService
from src.ecx_ledger.infrastructure.credit_ledger import InMemoryCreditLedger
from src.ecx_ledger.infrastructure.native_bank import NativeBank
from src.ecx_ledger.infrastructure.project_ledger import InMemoryProjectLedger
from src.ecx_market.domain.models import StakeBook
from src.ecx_market.engine.market_engine import MarketEngine
from src.ecx_market.infrastructure.recorder import SqlEventRecorder
from src.ecx_pricing.domain.conditions import MarketConditionsStore
from src.ecx_pricing.engine.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


@dataclass
class Exchange:
    projects: InMemoryProjectLedger
    credits: InMemoryCreditLedger
    bank: NativeBank
    auth: AuthorizationService
    conditions: MarketConditionsStore
    events: EventBus
    pricing: PricingEngine
    book: StakeBook
    market: MarketEngine


def build_exchange(
    admin: str = "ecx-admin",
    face_value: int | None = None,
    base_price: int | None = None,
    clock: Callable[[], int] = unix_now,
    persist_events: bool | None = None,
) -> Exchange:
    """Wire every collaborator. The market address receives PRICING_UPDATER."""
    market_address = settings.MARKET_ADDRESS
    bank = NativeBank()
    auth = AuthorizationService(bank, admin=admin)
    auth.grant_role(admin, Role.PRICING_UPDATER, market_address)

    projects = InMemoryProjectLedger()
    credits = InMemoryCreditLedger()
    conditions = MarketConditionsStore()
    events = EventBus()
    pricing = PricingEngine(
        projects, auth, conditions, events, base_price=base_price, clock=clock
    )
    book = StakeBook()
    market = MarketEngine(
        projects,
        credits,
        bank,
        auth,
        pricing,
        conditions,
        events,
        book=book,
        market_address=market_address,
        face_value=face_value,
    )

    persist = settings.PERSIST_EVENTS if persist_events is None else persist_events
    if persist:
        events.subscribe(SqlEventRecorder(get_session_factory()))
        logger.info("Market events will be recorded to %s", settings.DATABASE_URL.split("@")[-1])

    logger.info("%s exchange ready: market=%s admin=%s", settings.APP_NAME, market_address, admin)
    return Exchange(projects, credits, bank, auth, conditions, events, pricing, book, market)
