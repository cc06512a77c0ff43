"""Domain events for the Coupon aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was successfully applied to an order and counted against its limit."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    coupon_code = String(required=True)
    order_id = Identifier()
    used_count = Integer(required=True)
