"""
Calendar bucket arithmetic for planning horizons.

Canonical period keys:
    day      2024-03-05
    week     2024-W10   (ISO week, Monday start, ISO year)
    month    2024-03
    quarter  2024-Q1
    year     2024

Every bucket is anchored on its first day. Fixed horizons enumerate all buckets
overlapping ``[start_date, end_date]``; rolling horizons are re-anchored on the
current date at every call and never persisted.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from planbook.core.exceptions import HorizonTooLarge, InvalidHierarchyLevel

LEVELS: Tuple[str, ...] = ("day", "week", "month", "quarter", "year")
LEVEL_RANK = {level: rank for rank, level in enumerate(LEVELS)}

_STEPS = {
    "day": relativedelta(days=1),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}

_KEY_PATTERNS = {
    "day": re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"),
    "week": re.compile(r"^(\d{4})-W(\d{2})$"),
    "month": re.compile(r"^(\d{4})-(\d{2})$"),
    "quarter": re.compile(r"^(\d{4})-Q([1-4])$"),
    "year": re.compile(r"^(\d{4})$"),
}


@dataclass(frozen=True)
class TimePeriod:
    period: str
    type: str
    label: str
    date: date


def _check_level(level: str) -> None:
    if level not in LEVEL_RANK:
        raise ValueError(f"Unknown period type '{level}'")


def is_finer(level: str, than: str) -> bool:
    return LEVEL_RANK[level] < LEVEL_RANK[than]


def period_start(day: date, level: str) -> date:
    _check_level(level)
    if level == "day":
        return day
    if level == "week":
        return day - timedelta(days=day.weekday())
    if level == "month":
        return day.replace(day=1)
    if level == "quarter":
        return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
    return date(day.year, 1, 1)


def next_start(start: date, level: str) -> date:
    return start + _STEPS[level]


def period_end(start: date, level: str) -> date:
    return next_start(start, level) - timedelta(days=1)


def period_key(start: date, level: str) -> str:
    _check_level(level)
    if level == "day":
        return start.isoformat()
    if level == "week":
        iso_year, iso_week, _ = start.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if level == "month":
        return start.strftime("%Y-%m")
    if level == "quarter":
        return f"{start.year}-Q{(start.month - 1) // 3 + 1}"
    return str(start.year)


def period_label(start: date, level: str) -> str:
    _check_level(level)
    if level == "day":
        return start.strftime("%b %d, %Y")
    if level == "week":
        iso_year, iso_week, _ = start.isocalendar()
        return f"W{iso_week:02d} {iso_year}"
    if level == "month":
        return start.strftime("%b %Y")
    if level == "quarter":
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return str(start.year)


def parse_period(key: str, level: str) -> date:
    """Return the first day of the bucket named by ``key``; ValueError if malformed."""
    _check_level(level)
    match = _KEY_PATTERNS[level].match(key or "")
    if not match:
        raise ValueError(f"'{key}' is not a valid {level} period key")
    parts = [int(p) for p in match.groups()]
    if level == "day":
        return date(*parts)
    if level == "week":
        return date.fromisocalendar(parts[0], parts[1], 1)
    if level == "month":
        return date(parts[0], parts[1], 1)
    if level == "quarter":
        return date(parts[0], 3 * (parts[1] - 1) + 1, 1)
    return date(parts[0], 1, 1)


def make_period(start: date, level: str) -> TimePeriod:
    start = period_start(start, level)
    return TimePeriod(period=period_key(start, level), type=level, label=period_label(start, level), date=start)


def bounds(key: str, level: str) -> Tuple[date, date]:
    start = parse_period(key, level)
    return start, period_end(start, level)


def contains(coarse_key: str, coarse_level: str, fine_key: str, fine_level: str) -> bool:
    """A finer bucket belongs to the coarser bucket its first day falls in."""
    lo, hi = bounds(coarse_key, coarse_level)
    fine_start = parse_period(fine_key, fine_level)
    return lo <= fine_start <= hi


def enumerate_periods(start: date, end: date, level: str, limit: Optional[int] = None) -> List[TimePeriod]:
    if end < start:
        return []
    periods: List[TimePeriod] = []
    cursor = period_start(start, level)
    while cursor <= end:
        if limit is not None and len(periods) >= limit:
            raise HorizonTooLarge(
                f"Horizon {start.isoformat()}..{end.isoformat()} exceeds {limit} {level} periods.",
                {"level": level, "limit": limit},
            )
        periods.append(make_period(cursor, level))
        cursor = next_start(cursor, level)
    return periods


def rolling_window(today: date, count: int, unit: str) -> Tuple[date, date]:
    """``count`` consecutive ``unit`` buckets starting with the one containing ``today``."""
    start = period_start(today, unit)
    return start, start + _STEPS[unit] * count - timedelta(days=1)


def enabled_levels(flags: Iterable[str]) -> List[str]:
    """Enabled levels ordered finest to coarsest."""
    wanted = set(flags)
    return [level for level in LEVELS if level in wanted]


def resolve_horizon(setting, level: str, today: Optional[date] = None, limit: Optional[int] = None) -> List[TimePeriod]:
    """
    Resolve a time setting into ordered period columns at ``level``.

    ``setting`` is any object exposing ``kind``, ``start_date``, ``end_date``,
    ``rolling_periods``, ``rolling_unit`` and ``hierarchy_levels``.
    """
    enabled = enabled_levels(setting.hierarchy_levels)
    if level not in enabled:
        raise InvalidHierarchyLevel(level, enabled, getattr(setting, "id", None))

    if setting.kind == "rolling":
        start, end = rolling_window(today or date.today(), setting.rolling_periods, setting.rolling_unit)
    else:
        start, end = setting.start_date, setting.end_date
    return enumerate_periods(start, end, level, limit=limit)
