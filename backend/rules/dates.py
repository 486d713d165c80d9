"""Date parsing and relative date resolution for date operators."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from .service import EvaluationMetadata, RelativeAnchor, RelativeDateValue


def utc_now() -> datetime:
    """Current wall-clock time (UTC)."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_date(value: Any) -> datetime | None:
    """Parse an absolute date or timestamp.

    Accepts ``datetime``, ``date`` and date strings (ISO 8601 first, then
    free-form). Naive values are taken as UTC. Returns None for anything
    that cannot be read as a date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return _as_utc(date_parser.isoparse(text))
    except (ValueError, OverflowError):
        pass
    try:
        return _as_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def resolve_anchor(
    anchor: str | None,
    metadata: EvaluationMetadata,
    now: datetime | None = None,
) -> datetime:
    """Pick the base date for a relative offset.

    ``submission_date`` and ``policy_start_date`` read the matching metadata
    value; a missing or unparseable value, ``now`` and any unknown anchor
    fall back to the wall clock.
    """
    current = _as_utc(now) if now else utc_now()

    if anchor == RelativeAnchor.SUBMISSION_DATE.value:
        candidate = metadata.submission_date
    elif anchor == RelativeAnchor.POLICY_START_DATE.value:
        candidate = metadata.policy_start_date
    else:
        return current

    return parse_date(candidate) or current


def resolve_relative_date(
    descriptor: RelativeDateValue,
    metadata: EvaluationMetadata,
    now: datetime | None = None,
) -> datetime:
    """Resolve a relative date descriptor to an absolute timestamp.

    Offsets are applied days, then months, then years. Month and year steps
    clamp to the last valid day of the month (Jan 31 + 1 month -> Feb 28/29).
    """
    result = resolve_anchor(descriptor.from_, metadata, now)

    if descriptor.days:
        result = result + relativedelta(days=descriptor.days)
    if descriptor.months:
        result = result + relativedelta(months=descriptor.months)
    if descriptor.years:
        result = result + relativedelta(years=descriptor.years)

    return result


def as_relative_descriptor(value: Any) -> RelativeDateValue | None:
    """Return ``value`` as a RelativeDateValue if it is one (or a dict shaped like one)."""
    if isinstance(value, RelativeDateValue):
        return value
    if isinstance(value, dict) and value.get("type") == "relative":
        try:
            return RelativeDateValue.model_validate(value)
        except ValidationError:
            return None
    return None


def resolve_date_value(
    value: Any,
    metadata: EvaluationMetadata,
    now: datetime | None = None,
) -> datetime | None:
    """Resolve a condition value that may be relative or absolute.

    Returns None when the value is neither a usable descriptor nor a
    parseable date, or when the offset runs outside the supported range.
    """
    descriptor = as_relative_descriptor(value)
    if descriptor is not None:
        try:
            return resolve_relative_date(descriptor, metadata, now)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, dict):
        return None
    return parse_date(value)
