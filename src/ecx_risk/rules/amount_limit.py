from config.settings import settings
from src.ecx_common.errors import AmountOutOfRangeError


def check_amount_limit(
    amount: int,
    low: int = settings.MIN_TRADE_AMOUNT,
    high: int = settings.MAX_TRADE_AMOUNT,
) -> None:
    """Raise AmountOutOfRangeError if amount is not in [low, high].

    The upper bound also caps buyer-set growth per call, which keeps
    settlement iteration bounded.
    """
    if not (low <= amount <= high):
        raise AmountOutOfRangeError(amount, low, high)
