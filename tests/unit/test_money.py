"""
Unit tests - money helpers: rounding, epsilon comparison, triangulation, dates.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ledger.domain.money import (
    currency_decimals,
    money_equals,
    normalize_accounting_date,
    round_money,
    triangulate,
)


class TestTriangulation:
    """Line amount -> voucher currency -> base currency."""

    def test_two_step_conversion_rounds_once(self):
        """100 x 1.2 x 0.9 = 108.00 in a 2-decimal base currency."""
        result = triangulate(Decimal("100"), Decimal("1.2"), Decimal("0.9"), "USD")
        assert result.base_amount == Decimal("108.00")
        assert result.effective_rate == Decimal("1.080000")

    def test_zero_decimal_base_currency(self):
        result = triangulate(100, "1.2", "0.9", "JPY")
        assert result.base_amount == Decimal("108")
        assert str(result.base_amount) == "108"

    def test_three_decimal_base_currency(self):
        result = triangulate("10.5", "1", "0.3769", "KWD")
        assert result.base_amount == Decimal("3.957")

    def test_effective_rate_has_six_decimals(self):
        result = triangulate(1, "1.23456789", "1", "USD")
        assert result.effective_rate == Decimal("1.234568")

    def test_half_up_rounding(self):
        assert triangulate("0.125", 1, 1, "USD").base_amount == Decimal("0.13")

    @pytest.mark.parametrize("parity,header", [(0, 1), (1, 0), (-1, 1)])
    def test_non_positive_rates_rejected(self, parity, header):
        with pytest.raises(ValueError, match="positive"):
            triangulate(100, parity, header, "USD")


class TestRounding:

    def test_currency_decimals(self):
        assert currency_decimals("JPY") == 0
        assert currency_decimals("bhd") == 3
        assert currency_decimals("EUR") == 2

    def test_round_money_defaults_to_two_places(self):
        assert round_money("1.005") == Decimal("1.01")
        assert round_money(2.5, "KRW") == Decimal("3")

    def test_money_equals_within_epsilon(self):
        assert money_equals(Decimal("100.00"), Decimal("100.01")) is True
        assert money_equals(Decimal("100.00"), Decimal("100.02")) is False


class TestAccountingDate:

    def test_date_passes_through(self):
        assert normalize_accounting_date(date(2025, 1, 31)) == date(2025, 1, 31)

    def test_aware_datetime_converted_to_utc(self):
        late_evening = datetime(2025, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert normalize_accounting_date(late_evening) == date(2025, 2, 1)

    def test_iso_strings(self):
        assert normalize_accounting_date("2025-03-04") == date(2025, 3, 4)
        assert normalize_accounting_date("2025-03-04T22:00:00Z") == date(2025, 3, 4)

    def test_unsupported_value(self):
        with pytest.raises(ValueError):
            normalize_accounting_date(20250101)
