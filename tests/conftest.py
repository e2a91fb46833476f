"""Shared test fixtures.

The exchange is wired with face value 1 and a base price of 1000 so numbers
stay readable: collateral for 100 credits is 130, a FIXED price at quality
500 is 1000 per credit.
"""

import pytest

from src.ecx_common.enums import PricingModel, Role
from src.main import Exchange, build_exchange

ADMIN = "admin"
VALIDATOR = "validator"
COMPANY = "company"
ALICE = "alice"
BOB = "bob"

START_TS = 1_700_000_000
FUNDING = 10_000_000


class FakeClock:
    def __init__(self, now: int = START_TS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def exchange(clock: FakeClock) -> Exchange:
    ex = build_exchange(
        admin=ADMIN, face_value=1, base_price=1000, clock=clock, persist_events=False
    )
    ex.auth.grant_role(ADMIN, Role.VALIDATOR, VALIDATOR)
    ex.auth.grant_role(ADMIN, Role.COMPANY, COMPANY)
    for account in (COMPANY, ALICE, BOB):
        ex.bank.deposit(account, FUNDING)
    return ex


@pytest.fixture
def project_id(exchange: Exchange) -> int:
    """Ongoing project of COMPANY with supply 100, FIXED pricing at quality 500."""
    pid = exchange.projects.register_project(COMPANY, 100)
    exchange.pricing.initialize(ADMIN, pid, PricingModel.FIXED, 500)
    exchange.events.drain()
    return pid
