"""Shared BDD fixtures and step definitions for guest checkout."""

import json

import pytest
from ordering.catalogue.product import Product
from ordering.coupon.coupon import Coupon
from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceGuestOrder
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalogue():
    """Products created by Given steps, keyed by name."""
    return {}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def place_order(catalogue):
    """Place a single-line guest order and return the persisted Order."""

    def _place(name, quantity, **overrides):
        command = PlaceGuestOrder(
            email="guest@example.com",
            first_name="Ada",
            last_name="Lovelace",
            items=json.dumps([{"product_id": str(catalogue[name].id), "quantity": quantity}]),
            **overrides,
        )
        order_id = current_domain.process(command, asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)

    return _place


def reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} in stock'))
def _(catalogue, make_product, name, price, stock):
    catalogue[name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse('a {discount_type} coupon "{code}" worth {value}'))
def _(make_coupon, discount_type, code, value):
    make_coupon(code=code, discount_type=discount_type, discount_value=value)


@given(parsers.cfparse('a guest ordered {quantity:d} of "{name}"'), target_fixture="order")
def _(place_order, quantity, name):
    return place_order(name, quantity)


@given("the order was cancelled", target_fixture="order")
def _(order):
    current_domain.process(CancelOrder(order_id=str(order.id)), asynchronous=False)
    return reload(order)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order subtotal is {amount}"))
def _(order, amount):
    assert order.subtotal == amount


@then(parsers.cfparse("the order discount is {amount}"))
def _(order, amount):
    assert order.discount_amount == amount


@then(parsers.cfparse("the order total is {amount}"))
def _(order, amount):
    assert order.total_amount == amount


@then(parsers.cfparse("the order status is {status}"))
def _(order, status):
    assert reload(order).status == status


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(catalogue, name, stock):
    assert current_domain.repository_for(Product).get(catalogue[name].id).stock == stock


@then(parsers.cfparse('coupon "{code}" has been used {count:d} time'))
def _(code, count):
    coupon = current_domain.repository_for(Coupon)._dao.query.filter(code=code).all().items[0]
    assert coupon.used_count == count
