"""
Calendar helpers for report dates.

Reporting shift:
  A report dated D carries the actuals of D-1 in its yesterday list.
  Hours worked on calendar days [start, end] therefore live in reports
  dated [start+1, end+1]. reporting_window() is the only place that
  applies this rule.
"""
import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

PERIOD_DAYS = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
}


def today(tz: ZoneInfo) -> date:
    """Current date in the given timezone (the app runs on JST)."""
    return datetime.now(tz).date()


def next_day(d: date) -> date:
    return d + timedelta(days=1)


def previous_day(d: date) -> date:
    return d - timedelta(days=1)


def month_range(d: date) -> tuple[date, date]:
    """First and last calendar day of the month containing d."""
    last = calendar.monthrange(d.year, d.month)[1]
    return date(d.year, d.month, 1), date(d.year, d.month, last)


def reporting_window(start: date, end: date) -> tuple[date, date]:
    """Report dates whose yesterday lists cover calendar days [start, end]."""
    return next_day(start), next_day(end)


def period_range(period: str, current: date) -> tuple[date, date]:
    """Range ending today for 7days / 30days / 90days."""
    days = PERIOD_DAYS.get(period)
    if days is None:
        raise ValueError(f"unknown period: {period}")
    return current - timedelta(days=days), current


def month_label(d: date) -> str:
    """e.g. 2026年1月"""
    return f"{d.year}年{d.month}月"


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD, also accepting a full ISO timestamp."""
    value = value.strip()
    if len(value) > 10:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return date.fromisoformat(value)
