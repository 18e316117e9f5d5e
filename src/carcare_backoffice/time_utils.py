"""Date arithmetic for sessions, pay and reporting windows."""

import calendar
from datetime import UTC, date, datetime, time, timedelta
from typing import NamedTuple
from zoneinfo import ZoneInfo

SUSPECT_END_OF_DAY = time(23, 59)
DECEMBER = 12
MAX_PAY_PERIOD_START_DAY = 28


class HoursMinutes(NamedTuple):
    """Whole hours and remaining minutes of a duration."""

    hours: int
    minutes: int


def minutes_between(start: datetime, end: datetime) -> int:
    """Return whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def split_hours_minutes(total_minutes: int) -> HoursMinutes:
    """Split a minute count into hours and minutes."""
    hours, minutes = divmod(total_minutes, 60)
    return HoursMinutes(hours=hours, minutes=minutes)


def format_hours_minutes(total_minutes: int) -> str:
    """Return the compact `{h}h {m}m` form of a minute count."""
    hours, minutes = split_hours_minutes(total_minutes)
    return f"{hours}h {minutes}m"


def salary_for_minutes(total_minutes: int, hourly_rate: float) -> float:
    """Return pay for the worked minutes at the hourly rate."""
    hours, minutes = split_hours_minutes(total_minutes)
    return round(hours * hourly_rate + minutes * hourly_rate / 60, 2)


def is_suspect_end_time(end_time: datetime, tz: ZoneInfo | None = None) -> bool:
    """Return true when the local time of day is exactly 23:59."""
    local = end_time.astimezone(tz) if tz else end_time
    return local.hour == SUSPECT_END_OF_DAY.hour and (
        local.minute == SUSPECT_END_OF_DAY.minute
    )


def local_day(moment: datetime, tz: ZoneInfo | None = None) -> date:
    """Return the calendar date of a timestamp in the given timezone."""
    return (moment.astimezone(tz) if tz else moment).date()


def is_same_calendar_day(
    first: datetime, second: datetime | None = None, tz: ZoneInfo | None = None
) -> bool:
    """Compare calendar dates, not instants. `second` defaults to now."""
    other = second or datetime.now(tz=tz or UTC)
    return local_day(first, tz).isoformat() == local_day(other, tz).isoformat()


def window_end(start: date, days: int = 0, months: int = 0) -> date:
    """Advance a date by days and months, clamping to the month length."""
    result = start
    if months:
        month_index = result.month - 1 + months
        year = result.year + month_index // 12
        month = month_index % 12 + 1
        last_day = calendar.monthrange(year, month)[1]
        result = result.replace(year=year, month=month, day=min(result.day, last_day))
    return result + timedelta(days=days)


def day_window(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the half-open UTC range covering one local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(window_end(day, days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def date_range_window(
    date_from: date | None, date_to: date | None, tz: ZoneInfo
) -> tuple[datetime, datetime]:
    """Return the reporting range `[from, to + 1 day)` defaulting to today.

    A missing bound collapses onto the other one so a single date selects
    that whole day.
    """
    if date_from is None and date_to is None:
        today = datetime.now(tz=tz).date()
        return day_window(today, tz)
    first = date_from or date_to
    last = date_to or date_from
    if last < first:
        first, last = last, first
    start, _ = day_window(first, tz)
    _, end = day_window(last, tz)
    return start, end


def pay_period_bounds(day: date, start_day: int = 20) -> tuple[date, date]:
    """Return the `[start, end)` dates of the pay period containing `day`.

    `start_day` must exist in every month, so it is limited to 1-28.
    """
    if not 1 <= start_day <= MAX_PAY_PERIOD_START_DAY:
        raise ValueError(f"Pay period start day out of range: {start_day}")
    if day.day >= start_day:
        start = day.replace(day=start_day)
    else:
        start = window_end(day.replace(day=start_day), months=-1)
    return start, window_end(start, months=1)


def pay_period_window(
    day: date, tz: ZoneInfo, start_day: int = 20
) -> tuple[datetime, datetime]:
    """Return the UTC range of the pay period containing `day`."""
    start, end = pay_period_bounds(day, start_day)
    return day_window(start, tz)[0], day_window(end, tz)[0]


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    """Return the 23:59 timestamp of a local calendar day."""
    return datetime.combine(day, SUSPECT_END_OF_DAY, tzinfo=tz)
