"""Staking & penalty numerics.

All results are whole credits (or native sub-units where face_value is
applied). Division truncates, so every buyer's pro-rata share rounds down
and the shortfall is paid as compensation instead.
"""
from src.ecx_common.fixed_point import apply_ppt, checked_mul, mul_div, trunc_div

STAKE_NUMERATOR = 13
STAKE_DENOMINATOR = 10
VALIDATION_BONUS_PPT = 3  # 0.3% of collateral, valid settlement only


def stake_required(amount: int) -> int:
    """Collateral credits for listing `amount`: 130%, truncated."""
    return trunc_div(checked_mul(amount, STAKE_NUMERATOR), STAKE_DENOMINATOR)


def required_collateral(amount: int, face_value: int) -> int:
    return checked_mul(stake_required(amount), face_value)


def penalty_portion(staked_credits: int) -> int:
    """The 30-of-130 slice of a seller's stake forfeited on invalid settlement."""
    return mul_div(staked_credits, STAKE_NUMERATOR - STAKE_DENOMINATOR, STAKE_NUMERATOR)


def validation_bonus(collateral: int) -> int:
    return apply_ppt(collateral, VALIDATION_BONUS_PPT)


def pro_rata_share(stake: int, actual_amount: int, sold: int) -> int:
    """floor(stake * actual / sold); caller guarantees actual < sold."""
    return mul_div(stake, actual_amount, sold)


def unsold_remainder(actual_amount: int, sold: int) -> int:
    return max(actual_amount - sold, 0)
