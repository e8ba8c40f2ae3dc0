"""Parsers for the date and duration formats used by provider APIs."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from .model import PartialDate

_HYPHENATED_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_hyphenated_date(value: str | None) -> PartialDate:
    """Parse ``YYYY-MM-DD``; anything else yields an empty date."""

    if not value:
        return PartialDate()
    match = _HYPHENATED_DATE.match(value)
    if not match:
        return PartialDate()
    year, month, day = (int(part) for part in match.groups())
    return PartialDate(year=year, month=month, day=day)


def parse_iso_datetime(value: str | None) -> PartialDate:
    """Parse an ISO 8601 timestamp and keep its UTC calendar date."""

    if not value:
        return PartialDate()
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(normalized)
    except ValueError:
        return PartialDate()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return PartialDate(year=moment.year, month=moment.month, day=moment.day)


def parse_iso_duration(value: str | None) -> int | None:
    """Convert an ISO 8601 duration such as ``PT3M25S`` into milliseconds."""

    if not value:
        return None
    match = _ISO_DURATION.match(value)
    if not match or value in {"P", "PT"}:
        return None
    parts = {name: float(amount) for name, amount in match.groupdict().items() if amount}
    seconds = (
        parts.get("days", 0.0) * 86400
        + parts.get("hours", 0.0) * 3600
        + parts.get("minutes", 0.0) * 60
        + parts.get("seconds", 0.0)
    )
    return round(seconds * 1000)
