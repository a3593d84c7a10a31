"""Tests for date normalisation.

Covers:
- Year and year-month expansion with start/end semantics
- YAML-native values (date, int)
- UTC ISO instants
- Strict canonical parsing and lenient fallback
- Custom moment-style formats
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from timeline_sync.sync.dates import (
    coerce_date_value,
    is_canonical,
    normalize_date,
    normalize_iso_instant,
    parse_canonical,
    to_strftime,
)


class TestPartialDates:
    def test_year_start(self):
        assert normalize_date("2024") == "2024-01-01"

    def test_year_end_is_last_day(self):
        assert normalize_date("2024", is_end_date=True) == "2024-12-31"

    def test_month_start(self):
        assert normalize_date("2024-02") == "2024-02-01"

    def test_month_end_is_next_month_start(self):
        assert normalize_date("2024-02", is_end_date=True) == "2024-03-01"

    def test_december_end_rolls_into_next_year(self):
        assert normalize_date("2024-12", is_end_date=True) == "2025-01-01"

    def test_full_date_unchanged(self):
        assert normalize_date("2024-05-17", is_end_date=True) == "2024-05-17"


class TestNativeValues:
    def test_date_object(self):
        assert normalize_date(date(2024, 5, 17)) == "2024-05-17"

    def test_datetime_object(self):
        assert normalize_date(datetime(2024, 5, 17, 9, 30)) == "2024-05-17"

    def test_int_year(self):
        assert normalize_date(2024, is_end_date=True) == "2024-12-31"

    @pytest.mark.parametrize("value", [None, "", "   ", True])
    def test_empty_values(self, value):
        assert normalize_date(value) is None

    def test_coerce_strips_text(self):
        assert coerce_date_value("  2024-01-01 ", "YYYY-MM-DD") == "2024-01-01"


class TestIsoInstants:
    def test_utc_instant(self):
        assert normalize_date("2024-05-17T08:00:00Z") == "2024-05-17"

    def test_instant_with_fraction(self):
        assert (
            normalize_iso_instant("2024-05-17T23:59:59.500Z", "YYYY-MM-DD")
            == "2024-05-17"
        )

    def test_invalid_instant_is_none(self):
        assert normalize_date("2024-13-45T00:00:00Z") is None

    def test_instant_rendered_with_time_tokens(self):
        assert (
            normalize_iso_instant("2024-05-17T08:15:00Z", "YYYY-MM-DD HH:mm")
            == "2024-05-17 08:15"
        )


class TestFallbacks:
    def test_lenient_parse(self):
        assert normalize_date("May 17, 2024") == "2024-05-17"

    def test_unparseable_returns_original_with_warning(self):
        warnings: list[str] = []
        assert normalize_date("not a date", warnings=warnings) == "not a date"
        assert len(warnings) == 1
        assert "not a date" in warnings[0]

    def test_impossible_day_returned_unchanged(self):
        assert normalize_date("2024-02-30") == "2024-02-30"
        assert not is_canonical("2024-02-30", "YYYY-MM-DD")


class TestCustomFormat:
    FMT = "DD.MM.YYYY"

    def test_translation(self):
        assert to_strftime("YYYY-MM-DD HH:mm:ss") == "%Y-%m-%d %H:%M:%S"

    def test_percent_is_literal(self):
        assert to_strftime("YYYY%MM%DD") == "%Y%%%m%%%d"

    def test_year_in_custom_format(self):
        assert normalize_date("2024", date_format=self.FMT) == "01.01.2024"

    def test_canonical_value_kept(self):
        assert normalize_date("17.05.2024", date_format=self.FMT) == "17.05.2024"

    def test_iso_date_converted(self):
        assert normalize_date("2024-05-17", date_format=self.FMT) == "17.05.2024"


class TestParseCanonical:
    def test_valid(self):
        assert parse_canonical("2024-05-07", "YYYY-MM-DD") == datetime(2024, 5, 7)

    def test_unpadded_rejected(self):
        assert parse_canonical("2024-5-7", "YYYY-MM-DD") is None

    def test_none(self):
        assert parse_canonical(None, "YYYY-MM-DD") is None
