"""Guest order placement: command and handler.

Every line, the stock behind it and the coupon are checked before anything
is written, so a rejected order leaves stock and coupon usage untouched.
"""

import json

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from ordering.catalogue import ledger
from ordering.coupon.coupon import Coupon
from ordering.coupon.validation import find_coupon
from ordering.domain import ordering
from ordering.order.history import record_status_change
from ordering.order.numbering import assign_order_number
from ordering.order.order import Order, OrderStatus
from ordering.shared.clock import now as clock_now
from ordering.shared.errors import InvalidArgument, InvalidCoupon
from ordering.shared.money import ZERO, to_money

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceGuestOrder:
    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=20)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    shipping_address = Text()  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    tax_amount = String(max_length=20, default="0.00")
    shipping_cost = String(max_length=20, default="0.00")
    coupon_code = String(max_length=50)


def _load_json(value):
    return json.loads(value) if isinstance(value, str) else value


def _requested_quantities(items):
    """Sum requested quantities per product, keeping first-seen order."""
    if not items:
        raise InvalidArgument({"items": ["Order must contain at least one item"]})

    requested = {}
    for line in items:
        product_id = line.get("product_id")
        quantity = line.get("quantity")
        if not product_id:
            raise InvalidArgument({"items": ["Each item needs a product_id"]})
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidArgument({"items": [f"Quantity for product {product_id} must be a positive integer"]})
        requested[str(product_id)] = requested.get(str(product_id), 0) + quantity
    return requested


def _non_negative(value, field):
    amount = to_money(value, field)
    if amount < ZERO:
        raise InvalidArgument({field: [f"{field} must be non-negative"]})
    return amount


@ordering.command_handler(part_of=Order)
class PlaceGuestOrderHandler:
    @handle(PlaceGuestOrder)
    def place_guest_order(self, command):
        requested = _requested_quantities(_load_json(command.items))
        tax_amount = _non_negative(command.tax_amount, "tax_amount")
        shipping_cost = _non_negative(command.shipping_cost, "shipping_cost")

        # Resolve products and stock for the whole order before reserving anything
        products = {product_id: ledger.ensure_available(product_id, quantity) for product_id, quantity in requested.items()}
        projected_subtotal = sum(
            (products[product_id].unit_price * quantity for product_id, quantity in requested.items()),
            ZERO,
        )

        coupon = None
        if command.coupon_code and command.coupon_code.strip():
            coupon = find_coupon(command.coupon_code)
            reason = coupon.rejection_reason(projected_subtotal, clock_now())
            if reason is not None:
                raise InvalidCoupon(coupon.code, reason)

        order = Order.create(
            email=command.email,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
            shipping_address=_load_json(command.shipping_address),
            billing_address=_load_json(command.billing_address),
            tax_amount=tax_amount,
            shipping_cost=shipping_cost,
            order_date=clock_now(),
        )
        order.order_number = assign_order_number()

        for product_id, quantity in requested.items():
            unit_price = ledger.reserve(product_id, quantity)
            order.add_item(product_id, products[product_id].name, unit_price, quantity)

        if coupon is not None:
            order.apply_coupon(coupon, clock_now())
            coupon.record_usage(order_id=order.id)
            current_domain.repository_for(Coupon).add(coupon)

        order.mark_placed()
        current_domain.repository_for(Order).add(order)
        record_status_change(order.id, None, OrderStatus.PENDING, notes="Order created")

        logger.info(
            "Guest order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(order.items),
            total_amount=order.total_amount,
            coupon_code=order.coupon_code,
        )
        return str(order.id)
