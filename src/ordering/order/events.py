"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate and persisted alongside
it; money values travel as decimal strings.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A guest checkout was accepted and stock was reserved for every line."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    email = String(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price}
    subtotal = String(required=True)
    discount_amount = String(required=True)
    total_amount = String(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CouponAppliedToOrder:
    __version__ = 1

    order_id = Identifier(required=True)
    coupon_id = Identifier(required=True)
    coupon_code = String(required=True)
    discount_amount = String(required=True)
    new_total_amount = String(required=True)


@ordering.event(part_of="Order")
class CouponRemovedFromOrder:
    __version__ = 1

    order_id = Identifier(required=True)
    coupon_code = String(required=True)
    new_total_amount = String(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along the fulfilment path."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its line items are due back in stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    item_count = Integer(required=True)
    cancelled_at = DateTime(required=True)
