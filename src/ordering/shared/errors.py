"""Domain error taxonomy for the ordering context.

Each condition is its own exception class so callers can react to it
specifically. They extend protean's exceptions, which keeps the ``messages``
dict convention and lets the FastAPI integration map them to HTTP statuses.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class NotFound(ObjectNotFoundError):
    """An order, product or coupon lookup missed."""

    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)


class OrderNotFound(NotFound):
    def __init__(self, order_ref):
        self.order_ref = order_ref
        super().__init__({"order": [f"Order not found: {order_ref}"]})


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__({"product_id": [f"Product not found with ID: {product_id}"]})


class CouponNotFound(NotFound):
    def __init__(self, coupon_code):
        self.coupon_code = coupon_code
        super().__init__({"coupon_code": [f"Coupon not found: {coupon_code}"]})


class InvalidArgument(ValidationError):
    """Malformed input: unknown status name, non-positive quantity, bad amount."""


class InsufficientStock(ValidationError):
    def __init__(self, product_id, requested, available, product_name=None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        label = product_name or product_id
        super().__init__(
            {"quantity": [f"Insufficient stock for product {label}: {available} available, {requested} requested"]}
        )


class InvalidCoupon(ValidationError):
    def __init__(self, coupon_code, reason):
        self.coupon_code = coupon_code
        self.reason = reason
        super().__init__({"coupon_code": [f"Coupon {coupon_code} cannot be applied: {reason}"]})


class IllegalStateTransition(InvalidOperationError):
    def __init__(self, current, target, detail=None):
        self.current = current
        self.target = target
        message = detail or f"Cannot transition from {current} to {target}"
        self.messages = {"status": [message]}
        super().__init__(self.messages)
