"""Domain events for catalogue stock movements caused by orders."""

from protean.fields import Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="Product")
class StockReserved:
    """Units were taken out of stock for an order line."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@ordering.event(part_of="Product")
class StockReleased:
    """Units of a cancelled order line went back into stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@ordering.event(part_of="Product")
class StockAdjusted:
    """Stock was set to an absolute level by the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
