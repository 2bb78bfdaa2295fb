from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0.00")
TWOPLACES = Decimal("0.01")

LAKH = Decimal("100000")
CRORE = Decimal("10000000")


def coerce_numeric(value) -> Decimal:
    """
    Convert any incoming amount to a Decimal.

    Missing, empty, unparsable, NaN and infinite values become 0. Legacy
    records mix numbers, numeric strings and blanks, and only optional fields
    are affected, so they are zeroed rather than rejected.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "").replace("₹", "")
        if not text or text.upper() == "NIL":
            return Decimal("0")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def to_money(value) -> Decimal:
    return coerce_numeric(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def percentage(part, whole) -> Decimal:
    """part / whole * 100 rounded to 2 places, 0 when whole is not positive."""
    whole = coerce_numeric(whole)
    if whole <= 0:
        return ZERO
    ratio = coerce_numeric(part) / whole * 100
    return ratio.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _group_indian(digits):
    # 12345678 -> 1,23,45,678
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


def format_inr(value, show_nil=False):
    """
    Display helper for rupee amounts: crores and lakhs are abbreviated,
    smaller amounts use Indian digit grouping.
    """
    amount = coerce_numeric(value)
    if amount == 0 and show_nil:
        return "NIL"
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount >= CRORE:
        return f"{sign}₹{(amount / CRORE).quantize(TWOPLACES, rounding=ROUND_HALF_UP)}Cr"
    if amount >= LAKH:
        return f"{sign}₹{(amount / LAKH).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}L"
    rounded = amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    whole, _, fraction = f"{rounded:f}".partition(".")
    text = _group_indian(whole)
    if fraction and fraction != "00":
        text = f"{text}.{fraction}"
    return f"{sign}₹{text}"
