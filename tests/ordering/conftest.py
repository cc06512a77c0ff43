from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(ordering_bed):
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    setup_db(ordering)

    yield

    drop_db(ordering)


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def clock():
    """Freeze time at ``NOW`` for every test."""
    from ordering.shared.clock import FixedClock, reset_clock, set_clock

    fixed = FixedClock(NOW)
    set_clock(fixed)
    yield fixed
    reset_clock()


@pytest.fixture(autouse=True)
def order_numbers():
    from ordering.order.numbering import SequentialOrderNumberGenerator, reset_generator, set_generator

    generator = SequentialOrderNumberGenerator()
    set_generator(generator)
    yield generator
    reset_generator()


@pytest.fixture
def make_product():
    """Persist a product and return it."""
    from ordering.catalogue.product import Product
    from protean import current_domain

    def _make(name="Oak Dining Table", price="100.00", stock=10, category="Tables", **details):
        product = Product.create(name=name, category=category, price=price, stock=stock, **details)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def make_coupon():
    """Persist a coupon valid around ``NOW`` and return it."""
    from ordering.coupon.coupon import Coupon
    from protean import current_domain

    def _make(code="SAVE10", discount_type="PERCENTAGE", discount_value="10", **overrides):
        overrides.setdefault("valid_from", NOW - timedelta(days=1))
        overrides.setdefault("valid_until", NOW + timedelta(days=30))
        coupon = Coupon.create(code=code, discount_type=discount_type, discount_value=discount_value, **overrides)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make
