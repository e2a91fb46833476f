import pytest

from src.ecx_common.enums import PricingModel, PriceUpdateReason
from src.ecx_common.errors import (
    InvalidPricingModelError,
    MarketConditionOutOfRangeError,
    MissingRoleError,
    PricingAlreadyInitializedError,
    PricingNotInitializedError,
    QualityScoreOutOfRangeError,
)
from src.ecx_common.events import PriceUpdated, VolatilityAlert
from src.main import Exchange

ADMIN = "admin"
DAY = 86_400


def _project(ex: Exchange, model: PricingModel, quality: int = 500, supply: int = 100) -> int:
    pid = ex.projects.register_project("company", supply)
    ex.pricing.initialize(ADMIN, pid, model, quality)
    ex.events.drain()
    return pid


def _trade(ex: Exchange, pid: int, amount: int, is_buy: bool) -> int:
    if is_buy:
        ex.projects.set_sold(pid, ex.projects.sold(pid) + amount)
    return ex.pricing.record_trade(ex.market.market_address, pid, amount, is_buy)


class TestInitialize:
    def test_sets_quality_adjusted_base(self, exchange: Exchange) -> None:
        pid = exchange.projects.register_project("company", 100)
        pricing = exchange.pricing.initialize(ADMIN, pid, PricingModel.FIXED, 900)
        assert pricing.base_price == 1400
        assert pricing.current_price == 1400
        assert (pricing.min_price, pricing.max_price) == (140, 14_000)
        assert (pricing.demand_score, pricing.supply_score) == (500, 500)

    def test_emits_initialized(self, exchange: Exchange) -> None:
        pid = exchange.projects.register_project("company", 100)
        exchange.pricing.initialize(ADMIN, pid, PricingModel.FIXED, 500)
        assert exchange.events.pending == [
            PriceUpdated(pid, 0, 1000, PriceUpdateReason.INITIALIZED)
        ]

    def test_double_initialize_fails(self, exchange: Exchange, project_id: int) -> None:
        with pytest.raises(PricingAlreadyInitializedError):
            exchange.pricing.initialize(ADMIN, project_id, PricingModel.TWAP, 500)

    def test_quality_above_1000_fails(self, exchange: Exchange) -> None:
        with pytest.raises(QualityScoreOutOfRangeError):
            exchange.pricing.initialize(ADMIN, 0, PricingModel.FIXED, 1001)
        assert not exchange.pricing.is_initialized(0)

    def test_requires_admin(self, exchange: Exchange) -> None:
        with pytest.raises(MissingRoleError):
            exchange.pricing.initialize("company", 0, PricingModel.FIXED, 500)

    def test_unknown_model(self, exchange: Exchange) -> None:
        with pytest.raises(InvalidPricingModelError):
            exchange.pricing.initialize(ADMIN, 0, 7, 500)

    def test_bonding_curve_created_lazily(self, exchange: Exchange) -> None:
        fixed = _project(exchange, PricingModel.FIXED)
        curve = _project(exchange, PricingModel.BONDING_CURVE)
        assert exchange.pricing.pricing_info(fixed).bonding_curve is None
        assert exchange.pricing.pricing_info(curve).bonding_curve is not None


class TestCurrentPrice:
    def test_uninitialized_is_base_constant(self, exchange: Exchange) -> None:
        assert exchange.pricing.current_price(42) == 1000

    def test_market_conditions_visible_to_supply_demand(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        with pytest.raises(MarketConditionOutOfRangeError):
            exchange.pricing.update_market_conditions(ADMIN, 3000, 800, 200, 1500)
        assert exchange.pricing.current_price(pid) == 1000
        exchange.pricing.update_market_conditions(ADMIN, 1200, 800, 200, 1500)
        assert exchange.pricing.current_price(pid) == 1200

    def test_market_conditions_visible_after_trades(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        assert _trade(exchange, pid, 10, is_buy=True) == 1100
        exchange.pricing.update_market_conditions(ADMIN, 1200, 800, 200, 1500)
        assert exchange.pricing.current_price(pid) == 1320
        assert exchange.pricing.pricing_info(pid).current_price == 1320

    def test_update_market_conditions_requires_admin(self, exchange: Exchange) -> None:
        with pytest.raises(MissingRoleError):
            exchange.pricing.update_market_conditions("alice", 1200, 800, 200, 1500)

    def test_supply_demand_decays_while_idle(self, exchange: Exchange, clock) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        clock.advance(7 * DAY)
        assert exchange.pricing.current_price(pid) == 900


class TestRecordTrade:
    def test_requires_pricing_updater(self, exchange: Exchange, project_id: int) -> None:
        with pytest.raises(MissingRoleError):
            exchange.pricing.record_trade(ADMIN, project_id, 1, True)

    def test_uninitialized_project_fails(self, exchange: Exchange) -> None:
        with pytest.raises(PricingNotInitializedError):
            exchange.pricing.record_trade(exchange.market.market_address, 5, 1, True)

    def test_supply_demand_buy(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        assert _trade(exchange, pid, 10, is_buy=True) == 1100
        info = exchange.pricing.pricing_info(pid)
        assert info.total_volume == 10
        assert (info.demand_score, info.supply_score) == (550, 475)
        assert exchange.events.pending == [
            PriceUpdated(pid, 1000, 1100, PriceUpdateReason.TRADE)
        ]

    def test_sell_nudges_scores_down(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.FIXED)
        _trade(exchange, pid, 5, is_buy=False)
        info = exchange.pricing.pricing_info(pid)
        assert (info.demand_score, info.supply_score) == (450, 525)

    def test_scores_clamped(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.FIXED, supply=1000)
        for _ in range(15):
            _trade(exchange, pid, 1, is_buy=True)
        info = exchange.pricing.pricing_info(pid)
        assert (info.demand_score, info.supply_score) == (1000, 125)

    def test_large_move_raises_volatility_alert(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        _trade(exchange, pid, 20, is_buy=True)
        assert VolatilityAlert(pid, 200) in exchange.events.pending

    def test_ten_percent_move_is_not_volatile(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        _trade(exchange, pid, 10, is_buy=True)
        assert not any(isinstance(e, VolatilityAlert) for e in exchange.events.pending)

    def test_fixed_price_unchanged_emits_nothing(self, exchange: Exchange, project_id: int) -> None:
        _trade(exchange, project_id, 10, is_buy=True)
        assert exchange.events.pending == []

    def test_daily_samples(self, exchange: Exchange, clock) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        _trade(exchange, pid, 10, is_buy=True)
        _trade(exchange, pid, 5, is_buy=True)
        clock.advance(DAY)
        _trade(exchange, pid, 2, is_buy=False)
        history = exchange.pricing.price_history(pid)
        assert [s.volume for s in history] == [15, 2]
        assert history[0].day + 1 == history[1].day
        assert history[0].price == 1150

    @pytest.mark.parametrize("model", list(PricingModel))
    def test_price_stays_within_bounds(self, exchange: Exchange, model: PricingModel) -> None:
        pid = _project(exchange, model, quality=1000, supply=100)
        for i in range(40):
            _trade(exchange, pid, 2, is_buy=i % 5 != 0)
            info = exchange.pricing.pricing_info(pid)
            assert info.min_price <= exchange.pricing.current_price(pid) <= info.max_price


class TestAdminChanges:
    def test_change_model_recomputes(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.FIXED, quality=900)
        assert exchange.pricing.change_model(ADMIN, pid, PricingModel.QUALITY_ADJUSTED) == 1960
        assert exchange.pricing.current_price(pid) == 1960
        changed = PriceUpdated(pid, 1400, 1960, PriceUpdateReason.MODEL_CHANGED)
        assert changed in exchange.events.pending

    def test_change_to_bonding_curve_creates_curve(self, exchange: Exchange, project_id: int) -> None:
        exchange.pricing.change_model(ADMIN, project_id, PricingModel.BONDING_CURVE)
        assert exchange.pricing.pricing_info(project_id).bonding_curve is not None
        assert exchange.pricing.bonding_curve_price(project_id) == 1000

    def test_change_model_uninitialized(self, exchange: Exchange) -> None:
        with pytest.raises(PricingNotInitializedError):
            exchange.pricing.change_model(ADMIN, 3, PricingModel.TWAP)

    def test_higher_quality_prices_higher(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.QUALITY_ADJUSTED)
        high = exchange.pricing.update_quality(ADMIN, pid, 900)
        low = exchange.pricing.update_quality(ADMIN, pid, 200)
        assert exchange.pricing.pricing_info(pid).base_price == 1000
        assert (high, low) == (1400, 700)
        assert high > low

    def test_update_quality_validates(self, exchange: Exchange, project_id: int) -> None:
        with pytest.raises(QualityScoreOutOfRangeError):
            exchange.pricing.update_quality(ADMIN, project_id, 1500)


class TestPriceImpact:
    def test_buy_impact(self, exchange: Exchange, project_id: int) -> None:
        assert exchange.pricing.price_impact(project_id, 10, is_buy=True) == (99, 1099)

    def test_sell_impact_capped(self, exchange: Exchange, project_id: int) -> None:
        assert exchange.pricing.price_impact(project_id, 10, is_buy=False) == (500, 500)

    def test_zero_amount(self, exchange: Exchange, project_id: int) -> None:
        assert exchange.pricing.price_impact(project_id, 0, is_buy=True) == (0, 1000)

    def test_uninitialized_project(self, exchange: Exchange) -> None:
        assert exchange.pricing.price_impact(77, 1, is_buy=True) == (500, 1500)


class TestQueriesAndSnapshots:
    def test_time_decay_uses_clock(self, exchange: Exchange, clock) -> None:
        assert exchange.pricing.time_decay(clock.now - 86_400) == 950

    def test_pricing_info_is_a_copy(self, exchange: Exchange, project_id: int) -> None:
        info = exchange.pricing.pricing_info(project_id)
        info.current_price = 1
        assert exchange.pricing.current_price(project_id) == 1000

    def test_pricing_info_uninitialized(self, exchange: Exchange) -> None:
        with pytest.raises(PricingNotInitializedError):
            exchange.pricing.pricing_info(12)

    def test_snapshot_restore(self, exchange: Exchange) -> None:
        pid = _project(exchange, PricingModel.SUPPLY_DEMAND)
        state = exchange.pricing.snapshot()
        _trade(exchange, pid, 10, is_buy=True)
        exchange.pricing.restore(state)
        assert exchange.pricing.pricing_info(pid).total_volume == 0
        assert exchange.pricing.price_history(pid) == []
