"""Parsing of ``from``/``to`` query values into store time windows.

Date-only values are read as calendar days in the configured zone. An upper
bound always covers the whole calendar day it falls on, so windows end at the
following local midnight (exclusive).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

DEFAULT_LOOKBACK = timedelta(days=7)


@dataclass(frozen=True)
class TimeWindow:
    start: Optional[datetime]
    end: Optional[datetime]


def parse_instant(value: Optional[str], zone: tzinfo) -> Optional[datetime]:
    """Parse a date or ISO-8601 datetime; ``None`` when absent or unparsable."""
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None

    if len(candidate) == 10:
        try:
            return datetime.combine(date.fromisoformat(candidate), time.min, tzinfo=zone)
        except ValueError:
            return None

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def end_of_day(instant: datetime, zone: tzinfo) -> datetime:
    """Local midnight following the calendar day ``instant`` falls on."""
    local_day = instant.astimezone(zone).date()
    return datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=zone)


def resolve_window(
    raw_from: Optional[str],
    raw_to: Optional[str],
    zone: tzinfo,
    default_from: Optional[datetime] = None,
    default_to: Optional[datetime] = None,
) -> TimeWindow:
    start = parse_instant(raw_from, zone) or default_from
    upper = parse_instant(raw_to, zone) or default_to
    end = end_of_day(upper, zone) if upper is not None else None
    return TimeWindow(start=start, end=end)


def recent_window(
    raw_from: Optional[str],
    raw_to: Optional[str],
    zone: tzinfo,
    now: Optional[datetime] = None,
) -> TimeWindow:
    """Window defaulting to the last seven days through the end of today."""
    current = now or datetime.now(timezone.utc)
    return resolve_window(
        raw_from,
        raw_to,
        zone,
        default_from=current - DEFAULT_LOOKBACK,
        default_to=current,
    )
