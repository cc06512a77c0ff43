"""Order aggregate: a guest order, its line items and its money.

The aggregate owns the totals invariant::

    subtotal     == sum(item.total_price)
    total_amount == subtotal + tax_amount + shipping_cost - discount_amount
    0 <= discount_amount <= subtotal

Every mutation that touches items, coupon or amounts recalculates inside
``atomic_change``; the post-invariant then checks the money equation once,
on the final state.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED from any non-terminal state
"""

import json
import os
from datetime import timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.order.events import (
    CouponAppliedToOrder,
    CouponRemovedFromOrder,
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
)
from ordering.shared.clock import now as clock_now
from ordering.shared.errors import IllegalStateTransition, InvalidArgument, InvalidCoupon
from ordering.shared.money import ZERO, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, name):
        """Resolve a status name case-insensitively, raising InvalidArgument when unknown."""
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            raise InvalidArgument(
                {"status": [f"Unknown order status '{name}'. Expected one of: {', '.join(s.value for s in cls)}"]}
            ) from None


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if not targets)

# Coupons are frozen once the order has left the warehouse or was cancelled
_COUPON_LOCKED_STATES = {
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}


def delivery_days():
    return int(os.getenv("ORDER_DELIVERY_DAYS", "7"))


def can_transition(current, target):
    return target in _VALID_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A shipping or billing address captured at checkout.

    Embedded in the order; later changes to the guest's address book (if any)
    never reach an order already placed.
    """

    street = String(required=True, max_length=255)
    unit = String(max_length=50)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100)

    def formatted(self):
        street = f"{self.street} {self.unit}" if self.unit and self.unit.strip() else self.street
        region = " ".join(part for part in (self.state, self.postal_code) if part)
        parts = [street, self.city, region]
        if self.country and self.country.strip():
            parts.append(self.country)
        return ", ".join(parts)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item: a product snapshot, a quantity and the price frozen at reservation."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    unit_price = String(required=True, max_length=20)
    quantity = Integer(required=True, min_value=1)
    total_price = String(required=True, max_length=20)

    @classmethod
    def build(cls, product_id, product_name, unit_price, quantity):
        price = to_money(unit_price, "unit_price")
        return cls(
            product_id=str(product_id),
            product_name=product_name,
            unit_price=str(price),
            quantity=quantity,
            total_price=str(price * quantity),
        )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(max_length=20, unique=True)
    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=20)
    items = HasMany(OrderItem)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    subtotal = String(max_length=20, default="0.00")
    tax_amount = String(max_length=20, default="0.00")
    shipping_cost = String(max_length=20, default="0.00")
    discount_amount = String(max_length=20, default="0.00")
    total_amount = String(max_length=20, default="0.00")
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    order_date = DateTime()
    estimated_delivery_date = String(max_length=10)  # ISO date string
    coupon_id = Identifier()
    coupon_code = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_must_reconcile(self):
        subtotal = to_money(self.subtotal)
        items_total = sum((to_money(item.total_price) for item in self.items), ZERO)
        if subtotal != items_total:
            raise ValidationError(
                {"subtotal": [f"Subtotal {self.subtotal} does not match line items totalling {items_total}"]}
            )

        discount = to_money(self.discount_amount)
        if discount < ZERO or discount > subtotal:
            raise ValidationError({"discount_amount": ["Discount must be between zero and the subtotal"]})

        expected = subtotal + to_money(self.tax_amount) + to_money(self.shipping_cost) - discount
        if to_money(self.total_amount) != expected:
            raise ValidationError({"total_amount": [f"Total {self.total_amount} does not reconcile to {expected}"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        email,
        first_name,
        last_name,
        phone=None,
        shipping_address=None,
        billing_address=None,
        tax_amount=ZERO,
        shipping_cost=ZERO,
        order_date=None,
    ):
        """Start a PENDING order with no items.

        Addresses may be given as dicts or ``Address`` value objects.
        """
        tax = to_money(tax_amount, "tax_amount")
        shipping = to_money(shipping_cost, "shipping_cost")
        if tax < ZERO:
            raise InvalidArgument({"tax_amount": ["Tax amount must be non-negative"]})
        if shipping < ZERO:
            raise InvalidArgument({"shipping_cost": ["Shipping cost must be non-negative"]})

        order_date = order_date or clock_now()

        return cls(
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            status=OrderStatus.PENDING.value,
            subtotal=str(ZERO),
            tax_amount=str(tax),
            shipping_cost=str(shipping),
            discount_amount=str(ZERO),
            total_amount=str(tax + shipping),
            shipping_address=_as_address(shipping_address),
            billing_address=_as_address(billing_address),
            order_date=order_date,
            estimated_delivery_date=(order_date + timedelta(days=delivery_days())).date().isoformat(),
            created_at=order_date,
            updated_at=order_date,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if current == target_status == OrderStatus.CANCELLED:
            raise IllegalStateTransition(current.value, target_status.value, "Order is already cancelled")
        if not can_transition(current, target_status):
            raise IllegalStateTransition(current.value, target_status.value)

    def _assert_coupon_mutable(self, action):
        current = OrderStatus(self.status)
        if current in _COUPON_LOCKED_STATES:
            raise IllegalStateTransition(
                current.value,
                current.value,
                f"Cannot {action} coupon on order in status: {current.value}",
            )

    def _recalculate_totals(self):
        """Recompute subtotal and total from items, tax, shipping and discount.

        Callers wrap this in ``atomic_change`` together with the mutation
        that made it necessary.
        """
        subtotal = sum((to_money(item.total_price) for item in self.items), ZERO)
        discount = min(to_money(self.discount_amount), subtotal)
        total = subtotal + to_money(self.tax_amount) + to_money(self.shipping_cost) - discount

        self.subtotal = str(subtotal)
        self.discount_amount = str(discount)
        self.total_amount = str(total)
        self.updated_at = clock_now()

    def find_item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    # -------------------------------------------------------------------
    # Line items (only while PENDING)
    # -------------------------------------------------------------------
    def add_item(self, product_id, product_name, unit_price, quantity):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise IllegalStateTransition(self.status, self.status, "Items can only be changed while the order is PENDING")
        if quantity is None or quantity < 1:
            raise InvalidArgument({"quantity": ["Quantity must be at least 1"]})

        item = OrderItem.build(product_id, product_name, unit_price, quantity)
        with atomic_change(self):
            self.add_items(item)
            self._recalculate_totals()
        return item

    def remove_item(self, item_id):
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise IllegalStateTransition(self.status, self.status, "Items can only be changed while the order is PENDING")

        item = self.find_item(item_id)
        if item is None:
            raise InvalidArgument({"item_id": ["Item not found"]})

        with atomic_change(self):
            self.remove_items(item)
            self._recalculate_totals()
        return item

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def apply_coupon(self, coupon, now):
        """Apply ``coupon`` against the current subtotal and return the discount granted.

        Usage accounting stays with the caller (``coupon.record_usage()``).
        """
        self._assert_coupon_mutable("apply")
        if self.coupon_code:
            raise InvalidCoupon(coupon.code, f"order already has coupon {self.coupon_code} applied")

        subtotal = to_money(self.subtotal)
        reason = coupon.rejection_reason(subtotal, now)
        if reason is not None:
            raise InvalidCoupon(coupon.code, reason)

        discount = coupon.calculate_discount(subtotal, now)
        with atomic_change(self):
            self.coupon_id = str(coupon.id)
            self.coupon_code = coupon.code
            self.discount_amount = str(discount)
            self._recalculate_totals()

        self.raise_(
            CouponAppliedToOrder(
                order_id=str(self.id),
                coupon_id=str(coupon.id),
                coupon_code=coupon.code,
                discount_amount=str(discount),
                new_total_amount=self.total_amount,
            )
        )
        return discount

    def remove_coupon(self):
        """Clear the applied coupon, if any, and return its code."""
        self._assert_coupon_mutable("remove")
        previous_code = self.coupon_code

        with atomic_change(self):
            self.coupon_id = None
            self.coupon_code = None
            self.discount_amount = str(ZERO)
            self._recalculate_totals()

        if previous_code:
            self.raise_(
                CouponRemovedFromOrder(
                    order_id=str(self.id),
                    coupon_code=previous_code,
                    new_total_amount=self.total_amount,
                )
            )
        return previous_code

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_placed(self):
        """Announce a fully reserved, priced order."""
        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                order_number=self.order_number,
                email=self.email,
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in self.items
                    ]
                ),
                subtotal=self.subtotal,
                discount_amount=self.discount_amount,
                total_amount=self.total_amount,
                coupon_code=self.coupon_code,
                placed_at=self.order_date,
            )
        )

    def transition_to(self, target_status, reason=None):
        """Move to ``target_status`` following the transition table; return the previous status."""
        if target_status == OrderStatus.CANCELLED:
            return self.cancel(reason)

        self._assert_can_transition(target_status)
        previous = OrderStatus(self.status)
        changed_at = clock_now()
        self.status = target_status.value
        self.updated_at = changed_at

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target_status.value,
                changed_at=changed_at,
            )
        )
        return previous

    def cancel(self, reason=None):
        """Move to CANCELLED; the caller releases stock for every line exactly once."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        previous = OrderStatus(self.status)
        cancelled_at = clock_now()
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = cancelled_at

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous.value,
                reason=reason,
                item_count=len(self.items),
                cancelled_at=cancelled_at,
            )
        )
        return previous


def _as_address(value):
    if value is None or isinstance(value, Address):
        return value
    return Address(**value)
