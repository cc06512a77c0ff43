"""FastAPI routes for guest orders.

Thin adapters that translate HTTP requests into domain commands and read
accessors. No business logic, just schema→command→response translation.
"""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddressSchema,
    ApplyCouponRequest,
    CouponValidationResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    PlaceGuestOrderRequest,
    StatusHistoryEntryResponse,
    StatusHistoryResponse,
    UpdateOrderStatusRequest,
)
from ordering.coupon.validation import validate_coupon
from ordering.order import queries
from ordering.order.cancellation import CancelOrder
from ordering.order.coupons import ApplyCouponToOrder, RemoveCouponFromOrder
from ordering.order.creation import PlaceGuestOrder
from ordering.order.status import UpdateOrderStatus

guest_order_router = APIRouter(prefix="/guest-orders", tags=["guest-orders"])


def _address(address):
    if address is None:
        return None
    return AddressSchema(
        street=address.street,
        unit=address.unit,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
    )


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        email=order.email,
        first_name=order.first_name,
        last_name=order.last_name,
        phone=order.phone,
        status=order.status,
        items=[
            OrderItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                total_price=item.total_price,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        shipping_cost=order.shipping_cost,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        coupon_code=order.coupon_code,
        shipping_address=_address(order.shipping_address),
        billing_address=_address(order.billing_address),
        order_date=order.order_date.isoformat() if order.order_date else None,
        estimated_delivery_date=order.estimated_delivery_date,
    )


# ---------------------------------------------------------------------------
# Placement and lookup
# ---------------------------------------------------------------------------
@guest_order_router.post("", status_code=201, response_model=OrderResponse)
async def place_guest_order(body: PlaceGuestOrderRequest) -> OrderResponse:
    command = PlaceGuestOrder(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        items=json.dumps([line.model_dump() for line in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        tax_amount=body.tax_amount,
        shipping_cost=body.shipping_cost,
        coupon_code=body.coupon_code,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_response(queries.get_order(order_id))


@guest_order_router.get("", response_model=OrderListResponse)
async def list_orders() -> OrderListResponse:
    return OrderListResponse(orders=[_order_response(o) for o in queries.list_orders()])


@guest_order_router.get("/id/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(queries.get_order(order_id))


@guest_order_router.get("/id/{order_id}/history", response_model=StatusHistoryResponse)
async def get_status_history(order_id: str) -> StatusHistoryResponse:
    entries = queries.status_history(order_id)
    return StatusHistoryResponse(
        order_id=order_id,
        entries=[
            StatusHistoryEntryResponse(
                sequence=entry.sequence,
                previous_status=entry.previous_status,
                new_status=entry.new_status,
                notes=entry.notes,
                changed_by=entry.changed_by,
                changed_at=entry.changed_at.isoformat(),
            )
            for entry in entries
        ],
    )


@guest_order_router.get("/email/{email}", response_model=OrderListResponse)
async def list_orders_by_email(email: str) -> OrderListResponse:
    return OrderListResponse(orders=[_order_response(o) for o in queries.list_orders_by_email(email)])


@guest_order_router.get("/coupon/{code}/validate", response_model=CouponValidationResponse)
async def validate_coupon_code(code: str, order_amount: str) -> CouponValidationResponse:
    """Pre-check a coupon against an order amount without applying it."""
    quote = validate_coupon(code, order_amount)
    return CouponValidationResponse(
        coupon_code=quote.coupon_code,
        valid=quote.valid,
        discount_amount=str(quote.discount_amount),
        reason=quote.reason,
    )


@guest_order_router.get("/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str) -> OrderResponse:
    return _order_response(queries.get_order_by_number(order_number))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@guest_order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        notes=body.notes,
        changed_by=body.changed_by,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(queries.get_order(order_id))


@guest_order_router.delete("/{order_id}", response_model=OrderResponse)
async def cancel_order(order_id: str, reason: str | None = None) -> OrderResponse:
    command = CancelOrder(order_id=order_id, reason=reason)
    current_domain.process(command, asynchronous=False)
    return _order_response(queries.get_order(order_id))


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
@guest_order_router.post("/{order_id}/coupon", response_model=OrderResponse)
async def apply_coupon(order_id: str, body: ApplyCouponRequest) -> OrderResponse:
    command = ApplyCouponToOrder(order_id=order_id, coupon_code=body.coupon_code)
    current_domain.process(command, asynchronous=False)
    return _order_response(queries.get_order(order_id))


@guest_order_router.delete("/{order_id}/coupon", response_model=OrderResponse)
async def remove_coupon(order_id: str) -> OrderResponse:
    current_domain.process(RemoveCouponFromOrder(order_id=order_id), asynchronous=False)
    return _order_response(queries.get_order(order_id))
