"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.catalogue import ledger
from ordering.domain import ordering
from ordering.order.history import record_status_change
from ordering.order.order import Order, OrderStatus
from ordering.order.queries import get_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(max_length=100)


def cancel_order(order, reason=None, changed_by=None):
    """Cancel ``order``, return its stock and record the change.

    The transition is checked first, so a second cancellation raises
    before any stock is released.
    """
    previous_status = order.cancel(reason)

    for item in order.items:
        ledger.release(item.product_id, item.quantity)

    current_domain.repository_for(Order).add(order)
    record_status_change(order.id, previous_status, OrderStatus.CANCELLED, notes=reason, changed_by=changed_by)

    logger.info(
        "Order cancelled",
        order_id=str(order.id),
        order_number=order.order_number,
        previous_status=previous_status.value,
        reason=reason,
    )
    return order


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = get_order(command.order_id)
        cancel_order(order, reason=command.reason, changed_by=command.cancelled_by)
        return str(order.id)
