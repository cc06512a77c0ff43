"""Read accessors for guest orders and their status history."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.history import status_history as _status_history
from ordering.order.order import Order
from ordering.shared.errors import OrderNotFound


def get_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None


def get_order_by_number(order_number) -> Order:
    repo = current_domain.repository_for(Order)
    results = repo._dao.query.filter(order_number=order_number).all().items
    if not results:
        raise OrderNotFound(order_number)
    return results[0]


def _newest_first(queryset):
    return queryset.order_by("-order_date").limit(None).all().items


def list_orders_by_email(email) -> list[Order]:
    """Orders placed with ``email``, newest first. An unknown email yields an empty list."""
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(email=email))


def list_orders() -> list[Order]:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query)


def status_history(order_id):
    """History entries for an existing order, oldest first."""
    get_order(order_id)
    return _status_history(order_id)
