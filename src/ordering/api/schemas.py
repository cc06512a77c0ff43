"""Pydantic request/response schemas for the guest order API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Money travels as decimal strings.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    unit: str | None = None
    city: str
    state: str | None = None
    postal_code: str
    country: str | None = None


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PlaceGuestOrderRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = None
    items: list[OrderLineRequest] = Field(min_length=1)
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    tax_amount: str = "0.00"
    shipping_cost: str = "0.00"
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "guest@example.com",
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "shipping_address": {
                        "street": "1 Oak Lane",
                        "city": "Portland",
                        "state": "OR",
                        "postal_code": "97201",
                        "country": "USA",
                    },
                    "tax_amount": "8.00",
                    "shipping_cost": "15.00",
                    "coupon_code": "SAVE10",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    notes: str | None = None
    changed_by: str | None = None


class ApplyCouponRequest(BaseModel):
    coupon_code: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    item_id: str
    product_id: str
    product_name: str
    unit_price: str
    quantity: int
    total_price: str


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    status: str
    items: list[OrderItemResponse]
    subtotal: str
    tax_amount: str
    shipping_cost: str
    discount_amount: str
    total_amount: str
    coupon_code: str | None = None
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    order_date: str | None = None
    estimated_delivery_date: str | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class StatusHistoryEntryResponse(BaseModel):
    sequence: int
    previous_status: str | None = None
    new_status: str
    notes: str | None = None
    changed_by: str
    changed_at: str


class StatusHistoryResponse(BaseModel):
    order_id: str
    entries: list[StatusHistoryEntryResponse]


class CouponValidationResponse(BaseModel):
    coupon_code: str
    valid: bool
    discount_amount: str
    reason: str | None = None
