"""MarketEngine — sell / buy / validate_project over the shared ledger.

Every public operation is one guarded, atomic transaction:
  1. ReentrancyGuard: serialize callers; nested re-entry raises ReentrancyError
  2. atomic(): snapshot all stores; any exception restores them all
  3. Mutate state first, move currency last (payouts may run recipient code)
  4. Publish buffered notifications only after commit

Attached value (collateral / payment) is debited from the caller's native
balance into the market treasury (the bank account at market_address);
anything above the requirement is refunded after bookkeeping.
"""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from config.settings import settings
from src.ecx_common.enums import PricingModel, ProjectState, Role
from src.ecx_common.errors import (
    InternalError,
    ProjectCompletedError,
    ProjectNotFoundError,
    TreasuryShortfallError,
)
from src.ecx_common.events import BuyCredit, EventBus, Penalty, ProjectValidated, ReturnCredits
from src.ecx_common.transaction import Snapshotable, atomic
from src.ecx_ledger.domain.protocols import (
    AuthorizationProtocol,
    CreditLedgerProtocol,
    ProjectLedgerProtocol,
)
from src.ecx_ledger.infrastructure.native_bank import NativeBank
from src.ecx_market.domain.invariants import reconcile_settlement, verify_stake_bound
from src.ecx_market.domain.models import SettlementReport, StakeBook
from src.ecx_market.domain.settlement import plan_settlement
from src.ecx_market.domain.staking import penalty_portion, stake_required
from src.ecx_pricing.application.schemas import (
    MarketConditionsOut,
    PriceImpactOut,
    PriceSampleOut,
    PricingInfoOut,
)
from src.ecx_pricing.domain.conditions import MarketConditionsStore
from src.ecx_pricing.engine.pricing_engine import PricingEngine
from src.ecx_risk.rules.amount_limit import check_amount_limit
from src.ecx_risk.rules.collateral import check_collateral
from src.ecx_risk.rules.listing import (
    check_listing_capacity,
    check_purchasable,
    check_seller_staked,
)
from src.ecx_risk.rules.participant import check_project_owner, check_seller, check_trader
from src.ecx_risk.rules.payment import check_payment

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("ecx.settlement")


class MarketEngine:
    def __init__(
        self,
        projects: ProjectLedgerProtocol,
        credits: CreditLedgerProtocol,
        bank: NativeBank,
        auth: AuthorizationProtocol,
        pricing: PricingEngine,
        conditions: MarketConditionsStore,
        events: EventBus,
        book: StakeBook | None = None,
        market_address: str | None = None,
        face_value: int | None = None,
        min_amount: int | None = None,
        max_amount: int | None = None,
    ) -> None:
        self._projects = projects
        self._credits = credits
        self._bank = bank
        self._auth = auth
        self._pricing = pricing
        self._events = events
        self._book = book or StakeBook()
        self._market = market_address or settings.MARKET_ADDRESS
        self._face = face_value if face_value is not None else settings.CREDIT_FACE_VALUE
        self._min_amount = min_amount if min_amount is not None else settings.MIN_TRADE_AMOUNT
        self._max_amount = max_amount if max_amount is not None else settings.MAX_TRADE_AMOUNT
        self._participants: list[Snapshotable] = [
            projects,
            credits,
            bank,
            pricing,
            conditions,
            self._book,
        ]

    @property
    def market_address(self) -> str:
        return self._market

    @property
    def face_value(self) -> int:
        return self._face

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        async with self._auth.guard():
            try:
                with atomic(self._participants, self._events):
                    yield
            finally:
                # On abort only notifications committed before this call remain
                await self._events.publish(self._events.drain())

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def sell(self, caller: str, amount: int, project_id: int, collateral: int = 0) -> None:
        """List `amount` credits of a project. Attach >= 130% collateral while ongoing."""
        async with self._transaction():
            check_amount_limit(amount, self._min_amount, self._max_amount)
            check_seller(self._auth, self._projects, caller, project_id)
            self._collect(caller, collateral)

            if self._projects.state(project_id) == ProjectState.COMPLETED:
                # Resale of minted leftovers: credits go into market custody
                self._credits.transfer(caller, self._market, amount)
                self._book.add_replay(caller, project_id, amount)
                refund = collateral
                staked = 0
            else:
                check_listing_capacity(self._projects, project_id, amount)
                refund = check_collateral(amount, collateral, self._face)
                staked = stake_required(amount)
                self._projects.stake_collateral(caller, project_id, staked)

            self._projects.set_listed(project_id, self._projects.listed(project_id) + amount)
            self._book.add_seller_project(caller, project_id)
            self._record_trade(project_id, amount, is_buy=False)

            price = self._pricing.current_price(project_id)
            self._events.emit(
                ReturnCredits(project_id, caller, amount, price, staked * self._face)
            )
            logger.info(
                "Sell: seller=%s project=%d amount=%d staked=%d",
                caller,
                project_id,
                amount,
                staked,
            )
            await self._pay(caller, refund)

    async def buy(
        self, caller: str, amount: int, seller: str, project_id: int, payment: int = 0
    ) -> int:
        """Buy `amount` credits listed by `seller`. Returns the total cost charged."""
        async with self._transaction():
            check_amount_limit(amount, self._min_amount, self._max_amount)
            check_trader(self._auth, caller)
            if not self._projects.exists(project_id):
                raise ProjectNotFoundError(project_id)
            completed = self._projects.state(project_id) == ProjectState.COMPLETED

            if completed:
                self._book.take_replay(seller, project_id, amount)
            else:
                check_seller_staked(self._projects, seller, project_id)
                check_purchasable(self._projects, project_id, amount)

            # sold moves before the price read so supply/demand sees post-trade state
            self._projects.set_sold(project_id, self._projects.sold(project_id) + amount)
            price = self._pricing.current_price(project_id)
            total_cost, refund = check_payment(amount, price, payment)
            self._collect(caller, payment)

            if completed:
                self._credits.transfer(self._market, caller, amount)
            else:
                self._book.add_stake(caller, project_id, amount)
                self._book.add_escrow(project_id, total_cost)
                if verify_stake_bound(
                    self._book, project_id, self._projects.sold(project_id)
                ):
                    raise InternalError(f"Stake bound violated for project {project_id}")

            self._record_trade(project_id, amount, is_buy=True)
            self._events.emit(BuyCredit(project_id, caller, amount, price, total_cost))
            logger.info(
                "Buy: buyer=%s seller=%s project=%d amount=%d price=%d cost=%d resale=%s",
                caller,
                seller,
                project_id,
                amount,
                price,
                total_cost,
                completed,
            )

            # Currency moves last
            if completed:
                await self._pay(seller, total_cost)
            await self._pay(caller, refund)
            return total_cost

    async def validate_project(
        self,
        caller: str,
        seller: str,
        project_id: int,
        is_valid: bool,
        actual_amount: int,
    ) -> SettlementReport:
        """Terminal settlement. Runs exactly once per project."""
        async with self._transaction():
            self._auth.require_role(Role.VALIDATOR, caller)
            if not self._projects.exists(project_id):
                raise ProjectNotFoundError(project_id)
            if self._projects.state(project_id) == ProjectState.COMPLETED:
                raise ProjectCompletedError(project_id)
            check_project_owner(self._projects, seller, project_id)

            # Close the settlement window before anything moves
            self._projects.set_completed(project_id)

            stakes = self._book.stakes_for(project_id)
            report = plan_settlement(
                project_id=project_id,
                seller=seller,
                is_valid=is_valid,
                actual_amount=actual_amount,
                sold=self._projects.sold(project_id),
                stakes=stakes,
                staked_credits=self._projects.release_collateral(seller, project_id),
                escrowed_payments=self._book.release_escrow(project_id),
                face_value=self._face,
            )
            violations = reconcile_settlement(report, stakes)
            if violations:
                raise InternalError("; ".join(violations))

            for buyer, minted in report.buyer_credits.items():
                self._credits.mint(buyer, minted)
            self._credits.mint(seller, report.seller_credits)
            self._book.clear_project(project_id)
            self._projects.set_supply(project_id, report.remainder)
            self._projects.set_listed(project_id, 0)
            self._projects.set_sold(project_id, 0)

            self._events.emit(ProjectValidated(project_id, seller, is_valid))
            if not is_valid:
                self._events.emit(Penalty(project_id, seller))
                logger.warning(
                    "Penalty: seller=%s project=%d actual=%d sold=%d forfeited=%d retained=%d",
                    seller,
                    project_id,
                    actual_amount,
                    report.sold,
                    penalty_portion(report.staked_credits) * self._face,
                    report.retained,
                )
            audit_logger.info(
                "Settled project=%d seller=%s valid=%s actual=%d sold=%d collateral=%d "
                "escrow=%d payout=%d bonus=%d compensation=%d retained=%d",
                project_id,
                seller,
                is_valid,
                actual_amount,
                report.sold,
                report.collateral,
                report.escrowed_payments,
                report.seller_payout,
                report.bonus,
                report.compensation_paid,
                report.retained,
            )

            # Currency moves last: compensation first, then the seller
            for buyer, shortfall in report.buyer_shortfall.items():
                await self._pay(buyer, shortfall * self._face)
            await self._pay(seller, report.seller_payout)
            return report

    # ------------------------------------------------------------------
    # Admin delegates (pricing)
    # ------------------------------------------------------------------

    async def initialize_pricing(
        self, caller: str, project_id: int, model: PricingModel | int, quality_score: int
    ) -> None:
        async with self._transaction():
            self._pricing.initialize(caller, project_id, model, quality_score)

    async def update_market_conditions(
        self,
        caller: str,
        demand_multiplier: int,
        supply_multiplier: int,
        volatility_index: int,
        market_sentiment: int,
    ) -> None:
        async with self._transaction():
            self._pricing.update_market_conditions(
                caller, demand_multiplier, supply_multiplier, volatility_index, market_sentiment
            )

    async def change_model(self, caller: str, project_id: int, model: PricingModel | int) -> int:
        async with self._transaction():
            return self._pricing.change_model(caller, project_id, model)

    async def update_quality(self, caller: str, project_id: int, quality_score: int) -> int:
        async with self._transaction():
            return self._pricing.update_quality(caller, project_id, quality_score)

    # ------------------------------------------------------------------
    # Queries (no side effects)
    # ------------------------------------------------------------------

    def get_project_buyers(self, project_id: int) -> list[str]:
        return self._book.buyers(project_id)

    def get_current_price(self, project_id: int) -> int:
        return self._pricing.current_price(project_id)

    def get_project_pricing_info(self, project_id: int) -> PricingInfoOut:
        return PricingInfoOut.from_domain(self._pricing.pricing_info(project_id))

    def get_market_conditions(self) -> MarketConditionsOut:
        return MarketConditionsOut.from_domain(self._pricing.market_conditions())

    def get_price_impact(self, project_id: int, amount: int, is_buy: bool) -> PriceImpactOut:
        impact, projected = self._pricing.price_impact(project_id, amount, is_buy)
        return PriceImpactOut(impact_ppt=impact, projected_price=projected)

    def project_stake(self, buyer: str, project_id: int) -> int:
        return self._book.stake(buyer, project_id)

    def seller_projects(self, seller: str) -> list[int]:
        return self._book.seller_projects(seller)

    def replay_pool(self, seller: str, project_id: int) -> int:
        return self._book.replay_pool(seller, project_id)

    def treasury_balance(self) -> int:
        return self._bank.balance_of(self._market)

    def price_history(self, project_id: int) -> list[PriceSampleOut]:
        return [PriceSampleOut.from_domain(s) for s in self._pricing.price_history(project_id)]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record_trade(self, project_id: int, amount: int, is_buy: bool) -> None:
        # Projects traded without pricing simply stay at the base price
        if self._pricing.is_initialized(project_id):
            self._pricing.record_trade(self._market, project_id, amount, is_buy)

    def _collect(self, caller: str, value: int) -> None:
        if value > 0:
            self._bank.debit(caller, value)
            self._bank.credit(self._market, value)

    async def _pay(self, recipient: str, amount: int) -> None:
        if amount <= 0:
            return
        available = self._bank.balance_of(self._market)
        if available < amount:
            raise TreasuryShortfallError(amount, available)
        self._bank.debit(self._market, amount)
        await self._auth.payable(recipient).receive(amount)
