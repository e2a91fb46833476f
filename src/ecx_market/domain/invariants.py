"""Settlement and escrow invariants.

INV-S1: sum(buyer stakes) <= sold for every ongoing project
INV-S2: sum(minted buyer credits) + sum(shortfall credits) == sum(stakes)
INV-S3: retained == collateral + escrow - seller payout - compensation
INV-S4: valid settlement or actual >= sold mints every stake in full
INV-S5: payouts never exceed the project's own pool (retained >= 0)
"""
import logging

from src.ecx_market.domain.models import SettlementReport, StakeBook

logger = logging.getLogger(__name__)


def verify_stake_bound(book: StakeBook, project_id: int, sold: int) -> list[str]:
    violations: list[str] = []
    total = book.total_stakes(project_id)
    if total > sold:
        msg = f"INV-S1 violated: project={project_id} stakes={total} > sold={sold}"
        violations.append(msg)
        logger.error(msg)
    return violations


def reconcile_settlement(report: SettlementReport, stakes: dict[str, int]) -> list[str]:
    """Check a settlement report against the stakes it consumed. Returns violation strings."""
    violations: list[str] = []
    staked = sum(stakes.values())

    settled = report.total_buyer_credits + report.total_shortfall
    if settled != staked:
        violations.append(
            f"INV-S2 violated: minted({report.total_buyer_credits}) + "
            f"shortfall({report.total_shortfall}) = {settled} != stakes={staked}"
        )

    expected = (
        report.collateral
        + report.escrowed_payments
        - report.seller_payout
        - report.compensation_paid
    )
    if report.retained != expected:
        violations.append(
            f"INV-S3 violated: retained={report.retained} != collateral({report.collateral}) "
            f"+ escrow({report.escrowed_payments}) - payout({report.seller_payout}) "
            f"- compensation({report.compensation_paid}) = {expected}"
        )

    if report.retained < 0:
        violations.append(
            f"INV-S5 violated: payouts exceed project pool by {-report.retained}"
        )

    if report.is_valid or report.actual_amount >= report.sold:
        short = {b: s for b, s in stakes.items() if report.buyer_credits.get(b, 0) != s}
        if short:
            violations.append(f"INV-S4 violated: stakes not minted in full: {short}")

    for msg in violations:
        logger.error(msg)
    if not violations:
        logger.debug(
            "Settlement reconciled: project=%d stakes=%d retained=%d",
            report.project_id,
            staked,
            report.retained,
        )
    return violations
