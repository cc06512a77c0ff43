"""Inventory ledger: stock reads and movements on behalf of orders.

Every call re-reads the product through its repository, so a check or
reservation always sees the latest persisted stock. Callers run these inside
a command handler's unit of work; nothing here commits on its own.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product
from ordering.shared.errors import InsufficientStock, ProductNotFound

logger = structlog.get_logger(__name__)


def find_product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(str(product_id))
    except ObjectNotFoundError:
        raise ProductNotFound(product_id) from None


def ensure_available(product_id, quantity) -> Product:
    """Check that ``quantity`` units could be reserved, without reserving them."""
    product = find_product(product_id)
    if product.stock < quantity:
        raise InsufficientStock(
            product_id=str(product.id),
            requested=quantity,
            available=product.stock,
            product_name=product.name,
        )
    return product


def reserve(product_id, quantity):
    """Decrement stock by ``quantity`` and return the unit price frozen for the order line."""
    repo = current_domain.repository_for(Product)
    product = find_product(product_id)
    unit_price = product.reserve(quantity)
    repo.add(product)

    logger.info(
        "Stock reserved",
        product_id=str(product.id),
        quantity=quantity,
        remaining=product.stock,
    )
    return unit_price


def release(product_id, quantity) -> Product:
    repo = current_domain.repository_for(Product)
    product = find_product(product_id)
    product.release(quantity)
    repo.add(product)

    logger.info(
        "Stock released",
        product_id=str(product.id),
        quantity=quantity,
        new_stock=product.stock,
    )
    return product


def update_stock(product_id, new_stock) -> Product:
    repo = current_domain.repository_for(Product)
    product = find_product(product_id)
    product.set_stock(new_stock)
    repo.add(product)
    return product
