from src.ecx_common.errors import InsufficientPaymentError
from src.ecx_common.fixed_point import checked_mul


def check_payment(amount: int, price: int, supplied: int) -> tuple[int, int]:
    """Returns (total_cost, excess). Raises if the payment does not cover the cost."""
    total_cost = checked_mul(amount, price)
    if supplied < total_cost:
        raise InsufficientPaymentError(total_cost, supplied)
    return total_cost, supplied - total_cost
