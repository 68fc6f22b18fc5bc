"""
Calendar walk and rotating shift cycle for the schedule window.
"""

from calendar import monthrange
from datetime import date
from typing import Iterator, List, Union

from entities import CalendarDay, ScheduleConfig, ShiftLabel, DEFAULT_CONFIG


def add_months(year: int, month: int, offset: int):
    """Return (year, month) shifted by offset months"""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def iter_schedule_days(config: ScheduleConfig = DEFAULT_CONFIG) -> Iterator[CalendarDay]:
    """
    Yield every day of the schedule window in chronological order.

    The window starts at the first of the start date's month and spans
    config.months calendar months (month lengths and year rollover from
    the calendar module).
    """
    start = config.start_date
    for i in range(config.months):
        year, month = add_months(start.year, start.month, i)
        days_in_month = monthrange(year, month)[1]
        for d in range(1, days_in_month + 1):
            current = date(year, month, d)
            date_str = current.isoformat()
            yield CalendarDay(
                date=current,
                is_weekend=current.weekday() >= 5,
                is_holiday=date_str in config.public_holidays,
                is_team_leave_day=date_str in config.team_leave_days,
            )


def get_schedule_days(config: ScheduleConfig = DEFAULT_CONFIG) -> List[CalendarDay]:
    return list(iter_schedule_days(config))


def get_window_bounds(config: ScheduleConfig = DEFAULT_CONFIG):
    """First and last date of the schedule window"""
    start = date(config.start_date.year, config.start_date.month, 1)
    end_year, end_month = add_months(start.year, start.month, config.months - 1)
    end = date(end_year, end_month, monthrange(end_year, end_month)[1])
    return start, end


def cycle_index(current: date, config: ScheduleConfig = DEFAULT_CONFIG) -> int:
    """Position of a date in the shift cycle (floor-mod, never negative)"""
    offset = (current - config.cycle_start_date).days
    return offset % len(config.shift_cycle)


def resolve_team_shift(day: Union[CalendarDay, date], config: ScheduleConfig = DEFAULT_CONFIG) -> ShiftLabel:
    """
    Team-wide shift label for a day.

    Args:
        day: CalendarDay or plain date
        config: Schedule configuration (cycle, epoch, team leave days)

    Returns:
        The cycle label, or OFF on a team leave day
    """
    current = day.date if isinstance(day, CalendarDay) else day
    if current.isoformat() in config.team_leave_days:
        return ShiftLabel.OFF
    return config.shift_cycle[cycle_index(current, config)]
