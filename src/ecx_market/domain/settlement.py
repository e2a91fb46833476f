"""Settlement planning — how a validated project's stakes are apportioned.

plan_settlement() is pure: it takes the pre-settlement figures and returns a
SettlementReport. MarketEngine applies the report (mints, payouts) after it
has already flipped the project to COMPLETED.

Every payout comes out of the project's own pool (seller collateral plus the
payments its buyers escrowed). Seller cash for credits sold is their face
value, capped at what buyers actually paid in.

Branches:
  valid                      buyers minted full stakes; seller gets collateral
                             + sale cash + 0.3% bonus, the bonus funded by
                             escrow above the sale cash; remainder minted
  invalid, actual >= sold    buyers minted full stakes; seller gets sale cash
                             for sold; remainder minted; collateral retained
  invalid, actual <  sold    buyers minted floor(stake * actual / sold) and
                             paid the shortfall in cash; seller gets sale
                             cash for actual; nothing minted to seller
"""
from src.ecx_common.fixed_point import checked_add, checked_mul
from src.ecx_market.domain.models import SettlementReport
from src.ecx_market.domain.staking import pro_rata_share, unsold_remainder, validation_bonus


def sale_cash(credits: int, face_value: int, escrowed_payments: int) -> int:
    return min(checked_mul(credits, face_value), escrowed_payments)


def plan_settlement(
    project_id: int,
    seller: str,
    is_valid: bool,
    actual_amount: int,
    sold: int,
    stakes: dict[str, int],
    staked_credits: int,
    escrowed_payments: int,
    face_value: int,
) -> SettlementReport:
    report = SettlementReport(
        project_id=project_id,
        seller=seller,
        is_valid=is_valid,
        actual_amount=actual_amount,
        sold=sold,
        staked_credits=staked_credits,
        collateral=checked_mul(staked_credits, face_value),
        escrowed_payments=escrowed_payments,
    )
    remainder = unsold_remainder(actual_amount, sold)
    report.remainder = remainder

    if is_valid:
        report.buyer_credits = dict(stakes)
        report.seller_credits = remainder
        cash = sale_cash(sold, face_value, escrowed_payments)
        report.bonus = min(validation_bonus(report.collateral), escrowed_payments - cash)
        report.seller_payout = checked_add(checked_add(report.collateral, cash), report.bonus)
    elif actual_amount >= sold:
        report.buyer_credits = dict(stakes)
        report.seller_credits = remainder
        report.seller_payout = sale_cash(sold, face_value, escrowed_payments)
    else:
        for buyer, stake in stakes.items():
            share = pro_rata_share(stake, actual_amount, sold)
            report.buyer_credits[buyer] = share
            report.buyer_shortfall[buyer] = stake - share
        report.seller_payout = sale_cash(actual_amount, face_value, escrowed_payments)

    report.compensation_paid = checked_mul(report.total_shortfall, face_value)
    report.retained = (
        report.collateral
        + report.escrowed_payments
        - report.seller_payout
        - report.compensation_paid
    )
    return report
