"""Tests for date parsing and relative date resolution."""

from datetime import date, datetime, timezone

import pytest

from backend.rules import EvaluationMetadata, RelativeDateValue, parse_date, resolve_date_value, resolve_relative_date
from backend.rules.dates import resolve_anchor

from conftest import NOW


class TestParseDate:
    def test_iso_date_string_is_utc_midnight(self):
        assert parse_date("2026-03-01") == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_iso_timestamp_with_offset(self):
        parsed = parse_date("2026-03-01T10:00:00+02:00")
        assert parsed == datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

    def test_zulu_suffix(self):
        assert parse_date("2026-03-01T10:00:00Z") == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_free_form_string(self):
        assert parse_date("March 1, 2026") == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_date_and_datetime_objects(self):
        assert parse_date(date(2026, 3, 1)) == datetime(2026, 3, 1, tzinfo=timezone.utc)
        naive = datetime(2026, 3, 1, 9, 30)
        assert parse_date(naive) == datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", True, 12345, [], {}])
    def test_unparseable_values(self, value):
        assert parse_date(value) is None


class TestResolveAnchor:
    def test_now(self):
        assert resolve_anchor("now", EvaluationMetadata(), NOW) == NOW

    def test_submission_date_from_metadata(self):
        metadata = EvaluationMetadata(submissionDate="2026-01-10")
        assert resolve_anchor("submission_date", metadata, NOW) == datetime(2026, 1, 10, tzinfo=timezone.utc)

    def test_policy_start_date_snake_case(self):
        metadata = EvaluationMetadata.model_validate({"policy_start_date": "2025-12-01"})
        assert resolve_anchor("policy_start_date", metadata, NOW) == datetime(2025, 12, 1, tzinfo=timezone.utc)

    def test_missing_metadata_falls_back_to_now(self):
        assert resolve_anchor("submission_date", EvaluationMetadata(), NOW) == NOW

    def test_unparseable_metadata_falls_back_to_now(self):
        metadata = EvaluationMetadata(policyStartDate="soon")
        assert resolve_anchor("policy_start_date", metadata, NOW) == NOW

    def test_unknown_anchor_falls_back_to_now(self):
        assert resolve_anchor("trip_start_date", EvaluationMetadata(), NOW) == NOW


class TestResolveRelativeDate:
    def test_days_offset(self):
        descriptor = RelativeDateValue(days=-90)
        assert resolve_relative_date(descriptor, EvaluationMetadata(), NOW) == datetime(
            2025, 12, 15, 12, 0, tzinfo=timezone.utc
        )

    def test_month_end_clamps(self):
        metadata = EvaluationMetadata(submissionDate="2026-01-31")
        descriptor = RelativeDateValue(months=1, from_="submission_date")
        assert resolve_relative_date(descriptor, metadata).date() == date(2026, 2, 28)

    def test_leap_year_rollover(self):
        metadata = EvaluationMetadata(policyStartDate="2024-02-29")
        descriptor = RelativeDateValue.model_validate({"years": 1, "from": "policy_start_date"})
        assert resolve_relative_date(descriptor, metadata).date() == date(2025, 2, 28)

    def test_days_applied_before_months(self):
        metadata = EvaluationMetadata(submissionDate="2026-01-30")
        descriptor = RelativeDateValue(days=1, months=1, from_="submission_date")
        # Jan 30 + 1 day = Jan 31, + 1 month = Feb 28 (months first would give Mar 1)
        assert resolve_relative_date(descriptor, metadata).date() == date(2026, 2, 28)

    def test_combined_offsets(self):
        metadata = EvaluationMetadata(submissionDate="2026-03-15")
        descriptor = RelativeDateValue(days=-1, months=-2, years=-1, from_="submission_date")
        assert resolve_relative_date(descriptor, metadata).date() == date(2025, 1, 14)


class TestResolveDateValue:
    def test_descriptor_dict(self):
        value = {"type": "relative", "days": 10, "from": "now"}
        assert resolve_date_value(value, EvaluationMetadata(), NOW) == datetime(
            2026, 3, 25, 12, 0, tzinfo=timezone.utc
        )

    def test_absolute_string(self):
        assert resolve_date_value("2026-01-01", EvaluationMetadata(), NOW) == datetime(
            2026, 1, 1, tzinfo=timezone.utc
        )

    def test_malformed_descriptor(self):
        value = {"type": "relative", "days": "many"}
        assert resolve_date_value(value, EvaluationMetadata(), NOW) is None

    def test_other_mapping(self):
        assert resolve_date_value({"when": "2026-01-01"}, EvaluationMetadata(), NOW) is None

    def test_out_of_range_offset(self):
        value = RelativeDateValue(years=100000)
        assert resolve_date_value(value, EvaluationMetadata(), NOW) is None
