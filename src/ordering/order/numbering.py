"""Order number generation: ``ORD-<year>-<8 digits>``."""

import random

from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.shared.clock import now as clock_now

MAX_ATTEMPTS = 10


class OrderNumberGenerator:
    """Draws random order numbers stamped with the clock's current year."""

    prefix = "ORD"

    def __init__(self, rng=None):
        self._rng = rng or random.SystemRandom()

    def next_number(self):
        return f"{self.prefix}-{clock_now().year}-{self._rng.randrange(100_000_000):08d}"


class SequentialOrderNumberGenerator(OrderNumberGenerator):
    """Predictable numbers, for tests and local fixtures."""

    def __init__(self, start=1):
        super().__init__()
        self._next = start

    def next_number(self):
        number = f"{self.prefix}-{clock_now().year}-{self._next:08d}"
        self._next += 1
        return number


_generator_instance = None


def get_generator():
    """Return the configured order number generator (singleton)."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = OrderNumberGenerator()
    return _generator_instance


def set_generator(generator):
    global _generator_instance
    _generator_instance = generator


def reset_generator():
    """Reset the generator singleton (useful for testing)."""
    global _generator_instance
    _generator_instance = None


def _number_taken(order_number):
    repo = current_domain.repository_for(Order)
    return bool(repo._dao.query.filter(order_number=order_number).all().items)


def assign_order_number():
    """Draw numbers until one is unused, giving up after ``MAX_ATTEMPTS``."""
    generator = get_generator()
    for _ in range(MAX_ATTEMPTS):
        candidate = generator.next_number()
        if not _number_taken(candidate):
            return candidate
    raise RuntimeError(f"Could not assign a unique order number after {MAX_ATTEMPTS} attempts")
