# CompsMVP/utils/numbers.py
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

_LEADING_NUMBER = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)")


def to_decimal(value):
    """Best-effort Decimal conversion. Returns None when nothing numeric is found."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))

    text = str(value).strip().replace("$", "").replace(",", "")
    m = _LEADING_NUMBER.match(text)
    if not m:
        return None
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return None


def parse_numeric(value, default=Decimal(0)):
    """
    Leading-numeric extraction:
      "0.243618 acs" -> 0.243618, "$1,234" -> 1234, "n/a" -> default
    """
    d = to_decimal(value)
    return default if d is None else d


def parse_int(value, default=None):
    d = to_decimal(value)
    if d is None:
        return default
    return int(d.to_integral_value(rounding=ROUND_HALF_UP))


def _quantize(d, places):
    # widen precision so very large values quantize instead of raising InvalidOperation
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, d.adjusted() + places + 2)
        return d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def decimal_str(value, places=None):
    """Plain decimal string: no exponent, no currency, integral values without trailing zeros."""
    d = to_decimal(value)
    if d is None:
        return None
    if places is not None:
        return format(_quantize(d, places), "f")
    if d == d.to_integral_value():
        return format(_quantize(d, 0), "f")
    return format(d.normalize(), "f")


def price_per_sqft(price, square_feet):
    """price / sqft to 2 places; "0" when sqft is missing or zero."""
    p = to_decimal(price)
    s = to_decimal(square_feet)
    if p is None or not s:
        return "0"
    return decimal_str(p / s, places=2)
