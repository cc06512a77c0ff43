"""Applying and removing coupons on existing orders: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon
from ordering.coupon.validation import find_coupon
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.queries import get_order
from ordering.shared.clock import now as clock_now

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ApplyCouponToOrder:
    order_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@ordering.command(part_of="Order")
class RemoveCouponFromOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderCouponHandler:
    @handle(ApplyCouponToOrder)
    def apply_coupon(self, command):
        order = get_order(command.order_id)
        coupon = find_coupon(command.coupon_code)

        discount = order.apply_coupon(coupon, clock_now())
        coupon.record_usage(order_id=order.id)

        current_domain.repository_for(Coupon).add(coupon)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Coupon applied to order",
            order_id=str(order.id),
            coupon_code=coupon.code,
            discount_amount=str(discount),
            total_amount=order.total_amount,
        )
        return str(order.id)

    @handle(RemoveCouponFromOrder)
    def remove_coupon(self, command):
        order = get_order(command.order_id)

        # Usage already counted against the coupon stays counted
        removed_code = order.remove_coupon()
        current_domain.repository_for(Order).add(order)

        if removed_code:
            logger.info("Coupon removed from order", order_id=str(order.id), coupon_code=removed_code)
        return str(order.id)
