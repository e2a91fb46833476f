"""Integer fixed-point arithmetic for prices, ratios and scores.

All amounts are non-negative ints in a 256-bit domain. Ratios and scores are
parts-per-thousand (PPT). Division truncates toward zero; every product and
sum is bounds-checked. No float, no Decimal.
"""

from src.ecx_common.errors import ArithmeticOverflowError, DivisionByZeroError

UINT256_MAX = 2**256 - 1
PPT = 1000


def _check(value: int, op: str) -> int:
    if value > UINT256_MAX:
        raise ArithmeticOverflowError(f"{op} result exceeds 256 bits")
    if value < 0:
        raise ArithmeticOverflowError(f"{op} result is negative")
    return value


def checked_add(a: int, b: int) -> int:
    return _check(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    """a - b; a result below zero raises."""
    return _check(a - b, "sub")


def checked_mul(a: int, b: int) -> int:
    return _check(a * b, "mul")


def trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero (not floor): -7 / 2 -> -3."""
    if b == 0:
        raise DivisionByZeroError()
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def mul_div(a: int, b: int, d: int) -> int:
    """trunc(a * b / d) with an overflow-checked product."""
    return trunc_div(checked_mul(a, b), d)


def apply_ppt(value: int, ppt: int) -> int:
    """Scale value by a parts-per-thousand factor: ppt=1500 -> x1.5."""
    return mul_div(value, ppt, PPT)


def clamp(value: int, low: int, high: int) -> int:
    if value < low:
        return low
    if value > high:
        return high
    return value


def ppt_change(old: int, new: int) -> int:
    """Absolute relative change in PPT: 1000 -> 1150 gives 150."""
    if old == 0:
        return 0
    return mul_div(abs(new - old), PPT, old)


def units_to_display(amount: int, scale: int = 10**18) -> str:
    """Render sub-units as whole units: 1_500_000_000_000_000_000 -> '1.5'."""
    whole, frac = divmod(amount, scale)
    if frac == 0:
        return f"{whole:,}"
    digits = len(str(scale)) - 1
    return f"{whole:,}.{frac:0{digits}d}".rstrip("0")
