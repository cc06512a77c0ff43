"""Tests for money helpers and order number generation."""

import re
from decimal import Decimal

import pytest
from ordering.order import numbering
from ordering.order.numbering import OrderNumberGenerator, assign_order_number
from ordering.shared.money import money_str, percentage_of, to_money
from protean.exceptions import ValidationError


class TestMoney:
    @pytest.mark.parametrize(
        "raw,expected",
        [("195", "195.00"), ("19.999", "20.00"), ("0.005", "0.01"), (Decimal("12.344"), "12.34"), (7, "7.00")],
    )
    def test_quantized_half_up(self, raw, expected):
        assert money_str(raw) == expected

    def test_blank_is_zero(self):
        assert to_money(None) == Decimal("0.00")
        assert to_money("") == Decimal("0.00")

    def test_floats_rejected(self):
        with pytest.raises(ValidationError):
            to_money(0.1)

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError) as exc:
            to_money("ten dollars", "tax_amount")
        assert "tax_amount" in exc.value.messages

    def test_percentage_of(self):
        assert percentage_of(Decimal("200.00"), Decimal("10")) == Decimal("20.00")


class TestOrderNumbering:
    def test_format_uses_clock_year(self):
        number = OrderNumberGenerator().next_number()
        assert re.fullmatch(r"ORD-2026-\d{8}", number)

    def test_sequential_generator(self, order_numbers):
        assert assign_order_number() == "ORD-2026-00000001"
        assert assign_order_number() == "ORD-2026-00000002"

    def test_gives_up_when_every_number_is_taken(self, monkeypatch):
        monkeypatch.setattr(numbering, "_number_taken", lambda number: True)
        with pytest.raises(RuntimeError):
            assign_order_number()
