"""Append-only audit log of order status changes."""

import structlog
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import OrderStatus
from ordering.shared.clock import now as clock_now

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "SYSTEM"


@ordering.aggregate
class OrderStatusHistory:
    """One row per status change, never updated or deleted once written."""

    order_id = Identifier(required=True)
    sequence = Integer(required=True, min_value=1)  # tie-breaker for equal timestamps
    previous_status = String(choices=OrderStatus)  # None for the first entry
    new_status = String(required=True, choices=OrderStatus)
    notes = Text()
    changed_at = DateTime(required=True)
    changed_by = String(max_length=100, default=SYSTEM_ACTOR)


def status_history(order_id) -> list[OrderStatusHistory]:
    """Entries for ``order_id``, oldest first."""
    repo = current_domain.repository_for(OrderStatusHistory)
    return repo._dao.query.filter(order_id=str(order_id)).order_by("sequence").limit(None).all().items


def _status_value(status):
    if status is None:
        return None
    return status.value if isinstance(status, OrderStatus) else status


def record_status_change(order_id, previous_status, new_status, notes=None, changed_by=None) -> OrderStatusHistory:
    sequence = len(status_history(order_id)) + 1
    entry = OrderStatusHistory(
        order_id=str(order_id),
        sequence=sequence,
        previous_status=_status_value(previous_status),
        new_status=_status_value(new_status),
        notes=notes,
        changed_at=clock_now(),
        changed_by=changed_by or SYSTEM_ACTOR,
    )
    current_domain.repository_for(OrderStatusHistory).add(entry)

    logger.debug(
        "Order status recorded",
        order_id=str(order_id),
        previous_status=entry.previous_status,
        new_status=entry.new_status,
        sequence=sequence,
    )
    return entry
