"""Tests for adaptive trend sampling."""

from datetime import date
from decimal import Decimal

import pytest

from divfolio.data.client.static_price import StaticPriceSource
from divfolio.flows.trend import choose_interval, sample, sample_dates


class TestInterval:
    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            (date(2024, 1, 1), date(2024, 1, 20), 1),
            (date(2024, 1, 1), date(2024, 4, 1), 1),
            (date(2024, 1, 1), date(2024, 12, 31), 2),
            (date(2024, 1, 1), date(2025, 6, 1), 6),
            (date(2020, 1, 1), date(2024, 1, 1), 12),
        ],
    )
    def test_interval_by_span(self, start, end, expected):
        assert choose_interval(start, end) == expected


class TestSampleDates:
    def test_short_range_monthly_points(self):
        assert sample_dates(date(2024, 1, 1), date(2024, 3, 1)) == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
        ]

    def test_year_range_last_point_is_end(self):
        dates = sample_dates(date(2024, 1, 1), date(2024, 12, 31))

        assert len(dates) == 7
        assert dates[0] == date(2024, 1, 1)
        assert dates[-2] == date(2024, 11, 1)
        assert dates[-1] == date(2024, 12, 31)

    def test_single_day(self):
        assert sample_dates(date(2024, 5, 5), date(2024, 5, 5)) == [date(2024, 5, 5)]

    def test_dates_strictly_increasing(self):
        dates = sample_dates(date(2021, 3, 31), date(2024, 2, 29))
        assert all(a < b for a, b in zip(dates, dates[1:]))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            sample_dates(date(2024, 2, 1), date(2024, 1, 1))


class TestSample:
    def test_points_are_as_of_valuations(self, lot):
        source = StaticPriceSource({("2881", None): Decimal("60")})
        points = sample([lot], start=date(2024, 1, 1), end=date(2024, 3, 1), price_source=source)

        assert [p.date for p in points] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
        assert points[0].total_value == Decimal("0")
        assert points[0].total_investment == Decimal("0")
        assert points[1].total_value == Decimal("6000")
        assert points[1].normal_value == Decimal("6000")
        assert points[1].regular_value == Decimal("0")
        assert points[2].annual_dividend == Decimal("800")
        assert points[2].dividend_yield == Decimal("16")

    def test_only_held_symbols_are_priced(self, lot):
        source = StaticPriceSource({("2881", None): Decimal("60")})
        sample([lot], start=date(2024, 1, 1), end=date(2024, 3, 1), price_source=source)

        assert sorted(source.calls) == [("2881", date(2024, 2, 1)), ("2881", date(2024, 3, 1))]

    def test_missing_price_point_excludes_value(self, lot):
        source = StaticPriceSource({("2881", date(2024, 3, 1)): Decimal("55")})
        points = sample([lot], start=date(2024, 1, 1), end=date(2024, 3, 1), price_source=source)

        assert points[1].total_value == Decimal("0")
        assert points[1].total_investment == Decimal("5000")
        assert points[2].total_value == Decimal("5500")
