"""Product aggregate: the catalogue's view of a furniture piece as ordering sees it.

Catalogue CRUD and search live elsewhere; ordering only needs a product's
name, current price and stock counter. Stock moves through
:meth:`Product.reserve` and :meth:`Product.release`, which the inventory
ledger drives on behalf of orders.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String, Text

from ordering.catalogue.events import StockAdjusted, StockReleased, StockReserved
from ordering.domain import ordering
from ordering.shared.clock import now
from ordering.shared.errors import InsufficientStock
from ordering.shared.money import money_str, to_money


@ordering.aggregate
class Product:
    name = String(required=True, max_length=200)
    description = Text()
    category = String(required=True, max_length=100)
    price = String(required=True, max_length=20)  # decimal string
    stock = Integer(required=True, min_value=0)
    material = String(max_length=100)
    color = String(max_length=50)
    width_cm = Float(min_value=0.0)
    height_cm = Float(min_value=0.0)
    depth_cm = Float(min_value=0.0)
    image_url = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_must_be_positive(self):
        if to_money(self.price, "price") <= 0:
            raise ValidationError({"price": ["Price must be greater than zero"]})

    @classmethod
    def create(cls, name, category, price, stock, **details):
        timestamp = now()
        return cls(
            name=name,
            category=category,
            price=money_str(price, "price"),
            stock=stock,
            created_at=timestamp,
            updated_at=timestamp,
            **details,
        )

    @property
    def unit_price(self):
        return to_money(self.price, "price")

    def reserve(self, quantity):
        """Take ``quantity`` units out of stock and return the unit price at this instant."""
        if self.stock < quantity:
            raise InsufficientStock(
                product_id=str(self.id),
                requested=quantity,
                available=self.stock,
                product_name=self.name,
            )

        previous_stock = self.stock
        self.stock = previous_stock - quantity
        self.updated_at = now()

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
            )
        )
        return self.unit_price

    def release(self, quantity):
        previous_stock = self.stock
        self.stock = previous_stock + quantity
        self.updated_at = now()

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
            )
        )

    def set_stock(self, new_stock):
        if new_stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        previous_stock = self.stock
        self.stock = new_stock
        self.updated_at = now()

        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                previous_stock=previous_stock,
                new_stock=new_stock,
            )
        )
