from src.ecx_market.domain.invariants import reconcile_settlement, verify_stake_bound
from src.ecx_market.domain.models import SettlementReport, StakeBook
from src.ecx_market.domain.settlement import plan_settlement

FACE = 10


def _plan(
    is_valid: bool, actual: int, stakes: dict[str, int], sold: int, escrow: int | None = None
) -> SettlementReport:
    return plan_settlement(
        project_id=1,
        seller="company",
        is_valid=is_valid,
        actual_amount=actual,
        sold=sold,
        stakes=stakes,
        staked_credits=130,
        escrowed_payments=sold * 1000 if escrow is None else escrow,
        face_value=FACE,
    )


class TestValidSettlement:
    def test_buyers_get_full_stakes(self) -> None:
        stakes = {"alice": 30, "bob": 20}
        report = _plan(True, 120, stakes, sold=50)
        assert report.buyer_credits == stakes
        assert report.buyer_shortfall == {}
        assert report.total_buyer_credits == sum(stakes.values())

    def test_seller_payout(self) -> None:
        report = _plan(True, 120, {"alice": 50}, sold=50)
        assert report.collateral == 1300
        assert report.bonus == 3  # 0.3% of 1300, truncated
        assert report.seller_payout == 1300 + 3 + 500
        assert report.remainder == 70
        assert report.seller_credits == 70

    def test_reconciles(self) -> None:
        stakes = {"alice": 30, "bob": 20}
        assert reconcile_settlement(_plan(True, 50, stakes, sold=50), stakes) == []

    def test_sale_cash_capped_at_escrow(self) -> None:
        report = _plan(True, 50, {"alice": 50}, sold=50, escrow=400)
        assert report.bonus == 0
        assert report.seller_payout == 1300 + 400
        assert report.retained == 0

    def test_bonus_limited_to_escrow_surplus(self) -> None:
        report = _plan(True, 50, {"alice": 50}, sold=50, escrow=502)
        assert report.bonus == 2
        assert report.seller_payout == 1300 + 500 + 2
        assert report.retained == 0

    def test_payout_at_face_value_price_stays_within_pool(self) -> None:
        stakes = {"alice": 10}
        report = _plan(True, 100, stakes, sold=10, escrow=10 * FACE)
        assert report.seller_payout == 1300 + 100
        assert reconcile_settlement(report, stakes) == []


class TestInvalidSettlement:
    def test_actual_covers_sold(self) -> None:
        stakes = {"alice": 10}
        report = _plan(False, 15, stakes, sold=10)
        assert report.buyer_credits == {"alice": 10}
        assert report.seller_credits == 5
        assert report.seller_payout == 10 * FACE
        assert report.bonus == 0
        assert report.retained == 1300 + 10_000 - 100

    def test_zero_actual(self) -> None:
        report = _plan(False, 0, {"alice": 10}, sold=10)
        assert report.buyer_credits == {"alice": 0}
        assert report.buyer_shortfall == {"alice": 10}
        assert report.compensation_paid == 10 * FACE
        assert report.seller_payout == 0
        assert report.seller_credits == 0
        assert report.remainder == 0

    def test_pro_rata_shortfall(self) -> None:
        stakes = {"alice": 7, "bob": 3}
        report = _plan(False, 5, stakes, sold=10)
        assert report.buyer_credits == {"alice": 3, "bob": 1}
        assert report.buyer_shortfall == {"alice": 4, "bob": 2}
        assert report.seller_payout == 5 * FACE
        assert reconcile_settlement(report, stakes) == []

    def test_shortfall_independent_of_order(self) -> None:
        a = _plan(False, 5, {"alice": 7, "bob": 3}, sold=10)
        b = _plan(False, 5, {"bob": 3, "alice": 7}, sold=10)
        assert a.buyer_credits == b.buyer_credits
        assert a.buyer_shortfall == b.buyer_shortfall


class TestReconcile:
    def test_detects_credit_leak(self) -> None:
        stakes = {"alice": 10}
        report = _plan(True, 10, stakes, sold=10)
        report.buyer_credits["alice"] = 9
        violations = reconcile_settlement(report, stakes)
        assert any("INV-S2" in v for v in violations)
        assert any("INV-S4" in v for v in violations)

    def test_detects_cash_mismatch(self) -> None:
        stakes = {"alice": 10}
        report = _plan(False, 0, stakes, sold=10)
        report.retained += 1
        violations = reconcile_settlement(report, stakes)
        assert len(violations) == 1
        assert "INV-S3" in violations[0]

    def test_detects_payout_beyond_pool(self) -> None:
        stakes = {"alice": 10}
        report = _plan(True, 10, stakes, sold=10, escrow=100)
        report.seller_payout += 50
        report.retained -= 50
        violations = reconcile_settlement(report, stakes)
        assert len(violations) == 1
        assert "INV-S5" in violations[0]


class TestStakeBook:
    def test_buyer_set_deduplicated(self) -> None:
        book = StakeBook()
        book.add_stake("alice", 1, 5)
        book.add_stake("bob", 1, 2)
        book.add_stake("alice", 1, 3)
        assert book.buyers(1) == ["alice", "bob"]
        assert book.stake("alice", 1) == 8
        assert book.total_stakes(1) == 10

    def test_clear_project(self) -> None:
        book = StakeBook()
        book.add_stake("alice", 1, 5)
        book.add_stake("alice", 2, 1)
        book.clear_project(1)
        assert book.buyers(1) == []
        assert book.stake("alice", 1) == 0
        assert book.stake("alice", 2) == 1

    def test_stake_bound(self) -> None:
        book = StakeBook()
        book.add_stake("alice", 1, 5)
        assert verify_stake_bound(book, 1, sold=5) == []
        assert "INV-S1" in verify_stake_bound(book, 1, sold=4)[0]

    def test_seller_projects_idempotent(self) -> None:
        book = StakeBook()
        book.add_seller_project("company", 3)
        book.add_seller_project("company", 3)
        assert book.seller_projects("company") == [3]

    def test_snapshot_restore(self) -> None:
        book = StakeBook()
        book.add_stake("alice", 1, 5)
        state = book.snapshot()
        book.add_stake("bob", 1, 5)
        book.add_replay("company", 1, 4)
        book.restore(state)
        assert book.buyers(1) == ["alice"]
        assert book.replay_pool("company", 1) == 0
