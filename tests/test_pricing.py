"""Tests for price and total computations."""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from order_service.errors import ValidationError
from order_service.services.pricing import (
    active_discount,
    effective_unit_price,
    line_total,
    order_subtotal,
    order_total,
)


class TestEffectiveUnitPrice:
    def test_no_discount_returns_base_price(self):
        assert effective_unit_price(5000, 0) == Decimal("5000")

    def test_discount_applied(self):
        assert effective_unit_price(8000, 25) == Decimal("6000")

    @pytest.mark.parametrize("price", [0, 1, 999.99, 12000, 250000])
    @pytest.mark.parametrize("discount", [0, 1, 12.5, 50, 99, 100])
    def test_never_above_base_price(self, price, discount):
        result = effective_unit_price(price, discount)
        assert result <= Decimal(str(price))
        if discount == 0:
            assert result == Decimal(str(price))
        elif price > 0:
            assert result < Decimal(str(price))

    def test_full_discount_is_free(self):
        assert effective_unit_price(12000, 100) == 0

    @pytest.mark.parametrize("discount", [-1, 101, 150])
    def test_discount_out_of_range_rejected(self, discount):
        with pytest.raises(ValidationError):
            effective_unit_price(1000, discount)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            effective_unit_price(-1, 0)


class TestTotals:
    def test_scenario_single_line_with_shipping(self):
        lines = [{"price": 5000, "discount_percentage": 0, "quantity": 2}]
        subtotal = order_subtotal(lines)
        assert subtotal == Decimal("10000.00")
        assert order_total(subtotal, 1500) == Decimal("11500.00")

    def test_scenario_discounted_line(self):
        assert effective_unit_price(8000, 25) == Decimal("6000")
        assert line_total(8000, 25, 1) == Decimal("6000.00")

    def test_line_total_rounds_to_kobo(self):
        # 999.99 * 0.875 = 874.99125
        assert line_total(Decimal("999.99"), Decimal("12.5"), 1) == Decimal("874.99")

    def test_quantity_below_one_rejected(self):
        with pytest.raises(ValidationError):
            line_total(5000, 0, 0)

    def test_total_is_subtotal_plus_shipping_exactly(self):
        lines = [
            {"price": 0.1, "discount_percentage": 0, "quantity": 3},
            {"price": 0.2, "discount_percentage": 0, "quantity": 1},
        ]
        subtotal = order_subtotal(lines)
        assert subtotal == Decimal("0.50")
        assert order_total(subtotal, "0.30") - Decimal("0.30") == subtotal

    def test_missing_discount_defaults_to_zero(self):
        assert order_subtotal([{"price": 2500, "quantity": 2}]) == Decimal("5000.00")

    def test_negative_shipping_rejected(self):
        with pytest.raises(ValidationError):
            order_total(1000, -5)


class TestActiveDiscount:
    def _promo(self, discount, category=None, active=True, days_from=-1, days_to=1):
        now = datetime.utcnow()
        return SimpleNamespace(
            discount_percentage=discount,
            category=category,
            active=active,
            start_date=now + timedelta(days=days_from),
            end_date=now + timedelta(days=days_to),
        )

    def test_highest_matching_promotion_wins(self):
        promotions = [self._promo(10), self._promo(25, category="dresses"), self._promo(40, category="shirts")]
        assert active_discount("dresses", promotions) == 25

    def test_inactive_and_expired_ignored(self):
        promotions = [self._promo(30, active=False), self._promo(20, days_from=-5, days_to=-2)]
        assert active_discount("dresses", promotions) == 0

    def test_future_promotion_ignored(self):
        assert active_discount("dresses", [self._promo(15, days_from=1, days_to=3)]) == 0
