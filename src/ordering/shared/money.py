"""Money helpers: exact decimal arithmetic for order and coupon amounts.

Amounts are ``Decimal`` values quantized to cents with ROUND_HALF_UP. They
are persisted as canonical strings (``"195.00"``) on aggregates, so every
read goes through :func:`to_money` and every write through :func:`money_str`.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_money(value, field: str = "amount") -> Decimal:
    """Coerce ``value`` into a cent-quantized Decimal.

    Accepts Decimals, ints and numeric strings. Floats are rejected so that
    binary rounding errors never leak into monetary values.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        raise ValidationError({field: ["Monetary amounts must not be binary floats"]})
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError({field: [f"'{value}' is not a valid amount"]}) from None
    if not amount.is_finite():
        raise ValidationError({field: [f"'{value}' is not a valid amount"]})
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def money_str(value, field: str = "amount") -> str:
    """Canonical persisted form of an amount."""
    return str(to_money(value, field))


def optional_money(value, field: str = "amount") -> Decimal | None:
    if value is None or value == "":
        return None
    return to_money(value, field)


def percentage_of(amount: Decimal, percent: Decimal) -> Decimal:
    """``amount × percent / 100`` rounded half-up to cents."""
    return (amount * percent / HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)
