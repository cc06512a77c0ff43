"""Coupon aggregate: discount rules and usage accounting.

A coupon is valid inside its half-open window ``[valid_from, valid_until)``
while active and not exhausted. Discounts never exceed the amount they are
computed against, so an order total can never go below tax plus shipping.
Evaluation takes ``now`` explicitly; callers read it from the injected clock.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from ordering.coupon.events import CouponRedeemed
from ordering.domain import ordering
from ordering.shared.clock import as_utc
from ordering.shared.clock import now as clock_now
from ordering.shared.errors import InvalidCoupon
from ordering.shared.money import (
    HUNDRED,
    ZERO,
    money_str,
    optional_money,
    percentage_of,
    to_money,
)


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


def normalize_code(code):
    return code.strip().upper() if code else code


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = String(required=True, max_length=20)  # percent or fixed amount
    minimum_order_amount = String(max_length=20, default="0.00")
    maximum_discount_amount = String(max_length=20)  # cap, percentage coupons only
    usage_limit = Integer(min_value=0)  # None = unlimited
    used_count = Integer(default=0, min_value=0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from is None or self.valid_until is None:
            return
        if as_utc(self.valid_until) <= as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["valid_until must be later than valid_from"]})

    @invariant.post
    def discount_value_must_be_sensible(self):
        if not self.discount_value:
            return
        value = to_money(self.discount_value, "discount_value")
        if value <= 0:
            raise ValidationError({"discount_value": ["Discount value must be greater than zero"]})
        if self.discount_type == DiscountType.PERCENTAGE.value and value > HUNDRED:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.usage_limit is not None and (self.used_count or 0) > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon usage exceeds its limit"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        valid_from,
        valid_until,
        description=None,
        minimum_order_amount=ZERO,
        maximum_discount_amount=None,
        usage_limit=None,
        active=True,
    ):
        """Create a coupon with its code upper-cased and amounts normalized."""
        timestamp = clock_now()
        cap = optional_money(maximum_discount_amount, "maximum_discount_amount")
        return cls(
            code=normalize_code(code),
            description=description,
            discount_type=DiscountType(discount_type).value,
            discount_value=money_str(discount_value, "discount_value"),
            minimum_order_amount=money_str(minimum_order_amount, "minimum_order_amount"),
            maximum_discount_amount=str(cap) if cap is not None else None,
            usage_limit=usage_limit,
            used_count=0,
            valid_from=as_utc(valid_from),
            valid_until=as_utc(valid_until),
            active=active,
            created_at=timestamp,
            updated_at=timestamp,
        )

    # -------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------
    def is_exhausted(self):
        return self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit

    def is_within_window(self, now):
        return as_utc(self.valid_from) <= as_utc(now) < as_utc(self.valid_until)

    def is_valid(self, now):
        return bool(self.active) and self.is_within_window(now) and not self.is_exhausted()

    def can_apply(self, order_amount, now):
        return self.is_valid(now) and to_money(order_amount) >= to_money(self.minimum_order_amount)

    def rejection_reason(self, order_amount, now):
        """Why this coupon cannot be applied to ``order_amount`` at ``now``, or None."""
        if not self.active:
            return "coupon is inactive"
        now = as_utc(now)
        if now < as_utc(self.valid_from):
            return "coupon is not yet valid"
        if now >= as_utc(self.valid_until):
            return "coupon has expired"
        if self.is_exhausted():
            return "coupon usage limit reached"
        minimum = to_money(self.minimum_order_amount)
        if to_money(order_amount) < minimum:
            return f"minimum order amount is {minimum}"
        return None

    def calculate_discount(self, order_amount, now):
        amount = to_money(order_amount)
        if not self.can_apply(amount, now):
            return ZERO

        value = to_money(self.discount_value)
        if DiscountType(self.discount_type) == DiscountType.PERCENTAGE:
            discount = percentage_of(amount, value)
            cap = optional_money(self.maximum_discount_amount)
            if cap is not None and discount > cap:
                discount = cap
        else:
            discount = value

        return min(discount, amount)

    # -------------------------------------------------------------------
    # Usage accounting
    # -------------------------------------------------------------------
    def record_usage(self, order_id=None):
        """Count one redemption. Not idempotent: call once per successful application."""
        if self.is_exhausted():
            raise InvalidCoupon(self.code, "coupon usage limit reached")

        self.used_count = (self.used_count or 0) + 1
        self.updated_at = clock_now()

        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                coupon_code=self.code,
                order_id=str(order_id) if order_id else None,
                used_count=self.used_count,
            )
        )
