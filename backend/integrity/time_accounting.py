"""Working-time arithmetic for shift assignments.

Every function here is pure: it only reads the assignments it is given.
Shifts are expressed as a calendar date plus wall-clock start and end times
with minute precision. A shift whose end is before its start crosses midnight.
"""

import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from functools import reduce
from itertools import groupby

from .errors import InvalidShiftTimeError

MINUTES_PER_DAY = 24 * 60
NIGHT_START = "22:00"
NIGHT_END = "06:00"
REGULAR_HOURS_PER_DAY = 8.0

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(time_str: str) -> int:
    """Convert "HH:MM" to minutes since midnight.

    Raises:
        InvalidShiftTimeError: if the value is not a valid 24h wall-clock time
    """
    if not isinstance(time_str, str):
        raise InvalidShiftTimeError(f"Expected an HH:MM string, got {time_str!r}")

    match = _TIME_PATTERN.match(time_str.strip())
    if not match:
        raise InvalidShiftTimeError(f"Invalid time {time_str!r}, expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidShiftTimeError(f"Invalid time {time_str!r}, out of range")

    return hours * 60 + minutes


def round_hours(value: float, places: int = 2) -> float:
    """Round half-up, so 0.125 becomes 0.13 rather than 0.12."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def duration_minutes(start_time: str, end_time: str) -> int:
    start = parse_time(start_time)
    end = parse_time(end_time)

    # Crosses midnight
    if end < start:
        end += MINUTES_PER_DAY

    minutes = end - start
    if minutes < 0:
        raise InvalidShiftTimeError(f"Negative duration for shift {start_time}-{end_time}")
    return minutes


def duration(start_time: str, end_time: str) -> float:
    """Shift length in hours; 22:00-06:00 is 8.0, 09:00-09:00 is 0.0."""
    return duration_minutes(start_time, end_time) / 60


def shift_start_datetime(shift_date: date, start_time: str) -> datetime:
    minutes = parse_time(start_time)
    return datetime.combine(shift_date, time(minutes // 60, minutes % 60))


def shift_end_datetime(shift_date: date, start_time: str, end_time: str) -> datetime:
    """End of the shift as a datetime, rolled to the next day past midnight."""
    return shift_start_datetime(shift_date, start_time) + timedelta(
        minutes=duration_minutes(start_time, end_time)
    )


def chronological_key(shift) -> tuple[date, int]:
    """Sort key by date and start minute; "8:00" comes before "10:00"."""
    return shift.date, parse_time(shift.start_time)


def _in_night_window(minutes: int, night_start: int, night_end: int) -> bool:
    if night_start <= night_end:
        return night_start <= minutes < night_end
    return minutes >= night_start or minutes < night_end


def is_night_shift(
    start_time: str,
    end_time: str,
    night_start: str = NIGHT_START,
    night_end: str = NIGHT_END,
) -> bool:
    """True when the shift starts or ends inside the night window [22:00, 06:00)."""
    window_start = parse_time(night_start)
    window_end = parse_time(night_end)
    return (
        _in_night_window(parse_time(start_time), window_start, window_end)
        or _in_night_window(parse_time(end_time), window_start, window_end)
    )


def is_weekend(shift_date: date) -> bool:
    return shift_date.weekday() >= 5


def iso_week_key(shift_date: date) -> str:
    """ISO-8601 week label such as "2024-W10"."""
    iso_year, iso_week, _ = shift_date.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


@dataclass(frozen=True)
class HoursSummary:
    """Aggregated working time for a set of shifts."""
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    night_hours: float = 0.0
    weekend_hours: float = 0.0
    days_worked: int = 0

    def to_dict(self) -> dict:
        return {
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "night_hours": self.night_hours,
            "weekend_hours": self.weekend_hours,
            "days_worked": self.days_worked,
        }


def _add_shift(
    totals: HoursSummary,
    shift,
    night_start: str,
    night_end: str,
) -> HoursSummary:
    hours = duration(shift.start_time, shift.end_time)
    night = is_night_shift(shift.start_time, shift.end_time, night_start, night_end)
    return replace(
        totals,
        total_hours=totals.total_hours + hours,
        night_hours=totals.night_hours + (hours if night else 0.0),
        weekend_hours=totals.weekend_hours + (hours if is_weekend(shift.date) else 0.0),
        days_worked=totals.days_worked + 1,
    )


def _add_day(totals: HoursSummary, day_hours: float, regular_limit: float) -> HoursSummary:
    return replace(
        totals,
        regular_hours=totals.regular_hours + min(day_hours, regular_limit),
        overtime_hours=totals.overtime_hours + max(0.0, day_hours - regular_limit),
    )


def daily_hours(shifts) -> list[tuple[date, float]]:
    """Total hours per calendar date, in date order."""
    ordered = sorted(shifts, key=lambda s: s.date)
    return [
        (day, sum(duration(s.start_time, s.end_time) for s in day_shifts))
        for day, day_shifts in groupby(ordered, key=lambda s: s.date)
    ]


def aggregate(
    shifts,
    regular_hours_per_day: float = REGULAR_HOURS_PER_DAY,
    night_start: str = NIGHT_START,
    night_end: str = NIGHT_END,
) -> HoursSummary:
    """Fold a set of shifts into total, regular, overtime, night and weekend hours.

    Regular hours are the first ``regular_hours_per_day`` of each calendar
    day; anything beyond that on the same day counts as overtime. Results are
    rounded to 2 decimals.
    """
    shifts = list(shifts)
    totals = reduce(
        lambda acc, shift: _add_shift(acc, shift, night_start, night_end),
        shifts,
        HoursSummary(),
    )
    totals = reduce(
        lambda acc, day: _add_day(acc, day[1], regular_hours_per_day),
        daily_hours(shifts),
        totals,
    )
    return HoursSummary(
        total_hours=round_hours(totals.total_hours),
        regular_hours=round_hours(totals.regular_hours),
        overtime_hours=round_hours(totals.overtime_hours),
        night_hours=round_hours(totals.night_hours),
        weekend_hours=round_hours(totals.weekend_hours),
        days_worked=totals.days_worked,
    )
