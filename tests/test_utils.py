"""
Feed helper tests: parsing, filter building, month arithmetic.
"""

from datetime import date
from decimal import Decimal

import pytest

from treasury_fx.utils import (
    build_currency_filter,
    build_date_range_filter,
    format_api_date,
    join_filters,
    parse_api_date,
    parse_api_exchange_rate,
    subtract_months,
)


class TestParseApiDate:

    def test_iso_date(self):
        assert parse_api_date("2024-03-31") == date(2024, 3, 31)

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_api_date(" 2024-03-31 ") == date(2024, 3, 31)

    @pytest.mark.parametrize("value", [None, "", "   ", "31/03/2024", "2024-02-30", "not-a-date"])
    def test_unparseable_is_none(self, value):
        assert parse_api_date(value) is None


class TestParseApiExchangeRate:

    def test_exact_decimal(self):
        rate = parse_api_exchange_rate("1.355")

        assert isinstance(rate, Decimal)
        assert rate == Decimal("1.355")
        assert str(rate) == "1.355"

    def test_keeps_all_digits(self):
        assert parse_api_exchange_rate("16.528000001") == Decimal("16.528000001")

    @pytest.mark.parametrize("value", [None, "", "  ", "invalid-rate", "1,35", "NaN", "Infinity"])
    def test_unparseable_is_none(self, value):
        assert parse_api_exchange_rate(value) is None


class TestSubtractMonths:

    def test_plain(self):
        assert subtract_months(date(2024, 6, 15), 6) == date(2023, 12, 15)

    def test_clamps_to_end_of_leap_february(self):
        assert subtract_months(date(2024, 8, 31), 6) == date(2024, 2, 29)

    def test_clamps_to_end_of_february(self):
        assert subtract_months(date(2023, 8, 31), 6) == date(2023, 2, 28)

    def test_crosses_year(self):
        assert subtract_months(date(2024, 1, 31), 6) == date(2023, 7, 31)

    def test_zero_months(self):
        assert subtract_months(date(2024, 1, 31), 0) == date(2024, 1, 31)


class TestFilters:

    def test_format_api_date(self):
        assert format_api_date(date(2024, 1, 5)) == "2024-01-05"

    def test_single_currency_uses_eq(self):
        assert build_currency_filter(["Canada-Dollar"]) == "country_currency_desc:eq:Canada-Dollar"

    def test_several_currencies_use_in(self):
        assert (
            build_currency_filter(["Canada-Dollar", "Mexico-Peso"])
            == "country_currency_desc:in:(Canada-Dollar,Mexico-Peso)"
        )

    def test_single_currency_forced_in(self):
        assert (
            build_currency_filter(["Canada-Dollar"], always_in=True)
            == "country_currency_desc:in:(Canada-Dollar)"
        )

    def test_empty_currency_list_fails(self):
        with pytest.raises(ValueError):
            build_currency_filter([])

    def test_date_range_both_bounds(self):
        assert (
            build_date_range_filter(date(2024, 1, 1), date(2024, 6, 30))
            == "record_date:gte:2024-01-01,record_date:lte:2024-06-30"
        )

    def test_date_range_one_bound(self):
        assert build_date_range_filter(None, date(2024, 6, 30)) == "record_date:lte:2024-06-30"

    def test_date_range_no_bounds(self):
        assert build_date_range_filter(None, None) is None

    def test_join_filters_skips_empty(self):
        assert join_filters("a:eq:1", None, "", "b:lte:2") == "a:eq:1,b:lte:2"
