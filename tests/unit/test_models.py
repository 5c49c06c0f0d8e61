"""
Unit tests for model helpers (no database round trips).
"""

import pytest
from datetime import date
from decimal import Decimal
from taproom.models import Order, OrderStatus, Promotion, Weekday, parse_weekdays


class TestWeekday:
    """Tests for the Weekday enumeration."""

    def test_ordinal_matches_date_weekday(self):
        # 2026-10-19 is a Monday
        monday = date(2026, 10, 19)
        for offset, day in enumerate(Weekday):
            assert day.ordinal == offset
            assert Weekday.from_date(date(2026, 10, 19 + offset)) == day
        assert Weekday.from_date(monday) == Weekday.MONDAY

    def test_parse_is_case_insensitive(self):
        assert Weekday.parse('Friday') == Weekday.FRIDAY
        assert Weekday.parse(' SUNDAY ') == Weekday.SUNDAY

    @pytest.mark.parametrize('raw', ['funday', 3, None])
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(ValueError):
            Weekday.parse(raw)


class TestParseWeekdays:
    """Tests for decoding the stored days_of_week column."""

    def test_null_means_every_day(self):
        assert parse_weekdays(None) is None

    def test_json_array(self):
        assert parse_weekdays('["friday", "saturday"]') == frozenset({Weekday.FRIDAY, Weekday.SATURDAY})

    @pytest.mark.parametrize('raw', ['not json', '"friday"', '{"day": "friday"}', '["friday", 5]'])
    def test_malformed_values_raise(self, raw):
        with pytest.raises(ValueError):
            parse_weekdays(raw)

    def test_setter_stores_sorted_names(self):
        promotion = Promotion(name='Weekend')
        promotion.weekdays = ['sunday', Weekday.FRIDAY, 'saturday']
        assert promotion.days_of_week == '["friday", "saturday", "sunday"]'
        assert promotion.weekdays == frozenset({Weekday.FRIDAY, Weekday.SATURDAY, Weekday.SUNDAY})

        promotion.weekdays = None
        assert promotion.days_of_week is None


class TestPromotionUsage:
    """Tests for the usage counter helper."""

    def test_unlimited(self):
        assert Promotion(max_uses=None, current_uses=500).has_uses_left is True

    def test_limited(self):
        assert Promotion(max_uses=3, current_uses=2).has_uses_left is True
        assert Promotion(max_uses=3, current_uses=3).has_uses_left is False


class TestOrderStatus:
    """Tests for order status transitions."""

    @pytest.mark.parametrize('current, target, allowed', [
        (OrderStatus.PENDING, OrderStatus.IN_PREPARATION, True),
        (OrderStatus.PENDING, OrderStatus.SERVED, True),
        (OrderStatus.READY, OrderStatus.PENDING, False),
        (OrderStatus.SERVED, OrderStatus.SERVED, False),
        (OrderStatus.SERVED, OrderStatus.CANCELLED, True),
        (OrderStatus.PAID, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    ])
    def test_can_transition_to(self, current, target, allowed):
        assert Order(status=current).can_transition_to(target) is allowed

    def test_terminal_statuses(self):
        assert {s for s in OrderStatus if s.is_terminal} == {OrderStatus.PAID, OrderStatus.CANCELLED}

    def test_amount_due(self):
        order = Order(total=Decimal('30.00'), discount_amount=Decimal('4.50'))
        assert order.amount_due == Decimal('25.50')
