"""Order status updates: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.cancellation import cancel_order
from ordering.order.history import record_status_change
from ordering.order.order import Order, OrderStatus
from ordering.order.queries import get_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    notes = Text()
    changed_by = String(max_length=100)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        target = OrderStatus.parse(command.status)
        order = get_order(command.order_id)

        if target == OrderStatus.CANCELLED:
            cancel_order(order, reason=command.notes, changed_by=command.changed_by)
            return str(order.id)

        previous_status = order.transition_to(target)
        current_domain.repository_for(Order).add(order)
        record_status_change(order.id, previous_status, target, notes=command.notes, changed_by=command.changed_by)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous_status.value,
            new_status=target.value,
        )
        return str(order.id)
