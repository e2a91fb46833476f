from src.ecx_common.errors import InsufficientCollateralError
from src.ecx_market.domain.staking import required_collateral


def check_collateral(amount: int, supplied: int, face_value: int) -> int:
    """Raise unless supplied >= 130% of amount in face value. Returns the excess."""
    required = required_collateral(amount, face_value)
    if supplied < required:
        raise InsufficientCollateralError(required, supplied)
    return supplied - required
