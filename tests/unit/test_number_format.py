"""
Unit tests for amount and quantity parsing.
"""

import pytest
from decimal import Decimal
from taproom.utils.number_format import parse_amount, parse_money, parse_quantity, to_money


class TestParseAmount:
    """Tests for parse_amount."""

    def test_keeps_sub_cent_digits(self):
        assert parse_amount('49.995') == Decimal('49.995')
        assert parse_amount(Decimal('0.001')) == Decimal('0.001')

    @pytest.mark.parametrize('raw', [None, '', 'abc', '-0.001', True, 'NaN', '-Infinity'])
    def test_invalid_amounts(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestParseMoney:
    """Tests for parse_money."""

    @pytest.mark.parametrize('raw, expected', [
        ('4.50', Decimal('4.50')),
        (4.5, Decimal('4.50')),
        (Decimal('13.5'), Decimal('13.50')),
        (0, Decimal('0.00')),
        ('  12 ', Decimal('12.00')),
        ('4.500', Decimal('4.50')),
    ])
    def test_valid_amounts(self, raw, expected):
        assert parse_money(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'abc', '-0.01', -3, True, 'NaN', 'Infinity'])
    def test_invalid_amounts(self, raw):
        with pytest.raises(ValueError):
            parse_money(raw)

    @pytest.mark.parametrize('raw', ['4.505', '2.005', 0.001])
    def test_refuses_fractions_of_a_cent(self, raw):
        with pytest.raises(ValueError):
            parse_money(raw)

    def test_to_money_rounds_half_up(self):
        assert to_money(Decimal('2.005')) == Decimal('2.01')
        assert to_money(Decimal('19.994')) == Decimal('19.99')


class TestParseQuantity:
    """Tests for parse_quantity."""

    def test_int_and_digit_string(self):
        assert parse_quantity(3) == 3
        assert parse_quantity('7') == 7

    @pytest.mark.parametrize('raw', [0, -1, '0', '-2', 1.5, '1.5', True, None, 'two'])
    def test_rejects_non_positive_or_fractional(self, raw):
        with pytest.raises(ValueError):
            parse_quantity(raw)
