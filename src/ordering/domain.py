"""Ordering bounded context: guest checkout, coupons, and order lifecycle.

Handles guest order placement with inventory reservation against the
furniture catalogue, coupon validation and discounting, and the order
status machine with its append-only history.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")
