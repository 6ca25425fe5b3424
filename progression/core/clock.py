"""Time and day keying.

All streak and activity semantics are expressed in day-keys: ten-character
``YYYY-MM-DD`` strings in one reference zone. Because every key has the
same width and zero padding, plain string comparison is chronological.

The zone is chosen once (REFERENCE_TZ, default UTC) and handed to a
DayKeyer; nothing else in the engine converts instants to dates.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from progression.core.errors import InvalidInput


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, instant: datetime) -> None:
        self._now = _require_aware(instant)

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = _require_aware(instant)

    def advance(self, *, days: int = 0, seconds: float = 0) -> None:
        self._now = self._now + timedelta(days=days, seconds=seconds)


def _require_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInput("instant must be timezone-aware", instant=str(instant))
    return instant


class DayKeyer:
    def __init__(self, zone: str = "UTC") -> None:
        try:
            self._zone = ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise InvalidInput(f"unknown reference zone {zone!r}") from None
        self._zone_name = zone

    @property
    def zone_name(self) -> str:
        return self._zone_name

    def day_key(self, instant: datetime) -> str:
        return _require_aware(instant).astimezone(self._zone).date().isoformat()


def parse_day_key(key: str) -> date:
    if not isinstance(key, str) or len(key) != 10:
        raise InvalidInput(f"day key must be YYYY-MM-DD (got {key!r})")
    try:
        return date.fromisoformat(key)
    except ValueError:
        raise InvalidInput(f"day key must be YYYY-MM-DD (got {key!r})") from None


def shift_day(key: str, days: int) -> str:
    return (parse_day_key(key) + timedelta(days=days)).isoformat()


def previous_day(key: str) -> str:
    return shift_day(key, -1)


def day_range(from_day: str, to_day: str) -> list[str]:
    """Inclusive list of day-keys; empty when from_day is after to_day."""
    start, end = parse_day_key(from_day), parse_day_key(to_day)
    return [
        (start + timedelta(days=offset)).isoformat()
        for offset in range((end - start).days + 1)
    ]


def week_bounds(anchor: str) -> tuple[str, str]:
    """(Sunday, Saturday) of the week containing anchor."""
    anchor_date = parse_day_key(anchor)
    # date.weekday(): Monday=0 .. Sunday=6
    sunday = anchor_date - timedelta(days=(anchor_date.weekday() + 1) % 7)
    return sunday.isoformat(), (sunday + timedelta(days=6)).isoformat()
