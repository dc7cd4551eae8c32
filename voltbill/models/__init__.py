from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENTS = Decimal("0.01")

QUANTITY_STEP = Decimal("0.001")
RATE_STEP = Decimal("0.01")
# Largest magnitude a quantity or rate may take (9 integer digits)
MAX_NUMBER = Decimal("1e9")


def _group_indian(digits: str) -> str:
    """Group integer digits the Indian way: '12345678' -> '1,23,45,678'"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(amount: Decimal | int | float, symbol: str = "₹") -> str:
    """Format an amount as rupees: Decimal('123456.5') -> '₹1,23,456.50'"""
    value = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    return f"{sign}{symbol}{_group_indian(whole)}.{fraction}"


def parse_decimal(text: str) -> Decimal | None:
    """Parse a user-typed number into a Decimal. Returns None on invalid input.

    Accepts formats like '2', '2.5', '1,250.75' and a leading rupee sign.
    Values at or beyond MAX_NUMBER in magnitude are rejected.
    """
    text = (text or "").strip().lstrip("₹").replace(",", "").strip()
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite() or value.copy_abs() >= MAX_NUMBER:
        return None
    return value


def format_quantity(value: Decimal) -> str:
    """Render a quantity without trailing zeros: Decimal('2.500') -> '2.5'"""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")
