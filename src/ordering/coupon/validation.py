"""Coupon lookup and the read-only pre-check offered to checkout pages."""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon, normalize_code
from ordering.shared.clock import now
from ordering.shared.errors import CouponNotFound
from ordering.shared.money import ZERO, to_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CouponQuote:
    """Outcome of checking a coupon code against an order amount."""

    coupon_code: str
    valid: bool
    discount_amount: Decimal = ZERO
    reason: str | None = None


def find_coupon(code) -> Coupon:
    normalized = normalize_code(code)
    if not normalized:
        raise CouponNotFound(code)

    results = current_domain.repository_for(Coupon)._dao.query.filter(code=normalized).all().items
    if not results:
        raise CouponNotFound(normalized)
    return results[0]


def validate_coupon(code, order_amount) -> CouponQuote:
    """Report whether ``code`` applies to ``order_amount`` and the discount it would give.

    Unknown or blank codes are reported as invalid rather than raised, since
    this is a pre-check and not a use case.
    """
    amount = to_money(order_amount, "order_amount")
    normalized = normalize_code(code) or ""

    try:
        coupon = find_coupon(normalized)
    except CouponNotFound:
        logger.debug("Coupon pre-check for unknown code", coupon_code=normalized)
        return CouponQuote(coupon_code=normalized, valid=False, reason="coupon not found")

    instant = now()
    reason = coupon.rejection_reason(amount, instant)
    if reason is not None:
        return CouponQuote(coupon_code=coupon.code, valid=False, reason=reason)

    discount = coupon.calculate_discount(amount, instant)
    logger.debug("Coupon pre-check", coupon_code=coupon.code, order_amount=str(amount), discount=str(discount))
    return CouponQuote(coupon_code=coupon.code, valid=True, discount_amount=discount)
