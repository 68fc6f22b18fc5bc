"""
Aggregation of a generated schedule.

Groups days by calendar month and computes the yearly and monthly task
summaries shown under the roster, plus the personal overview of one person.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from entities import (
    Assignment, DaySchedule, ScheduleConfig, ShiftLabel, TaskSummary,
    DEFAULT_CONFIG, format_month_label
)


@dataclass
class MonthSchedule:
    """Days of one calendar month with that month's summary"""
    year: int
    month: int
    days: List[DaySchedule] = field(default_factory=list)
    summary: TaskSummary = field(default_factory=TaskSummary)

    @property
    def label(self) -> str:
        return format_month_label(self.year, self.month)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass
class YearlySchedule:
    """Whole-window summary plus the per-month breakdown"""
    yearly_summary: TaskSummary
    months: List[MonthSchedule]


def calculate_summary(
    days: Iterable[DaySchedule],
    personnel: Sequence[str],
    config: ScheduleConfig = DEFAULT_CONFIG
) -> TaskSummary:
    """
    Count station tasks per person over the given days.

    Every roster member, the special personnel and anybody appearing in the
    days (reinforcements included) gets an entry, zero if they never worked
    a station. Off and leave records never count.
    """
    days = list(days)
    summary = TaskSummary()
    for personnel_name in [*personnel, config.special_personnel]:
        summary.ensure(personnel_name)
    for day in days:
        for assignment in day.assignments:
            summary.ensure(assignment.personnel)

    for day in days:
        for assignment in day.assignments:
            if assignment.counts_as_task:
                summary.record(assignment.personnel, assignment.station)
    return summary


def group_by_month(days: Iterable[DaySchedule]) -> List[MonthSchedule]:
    """Group days by calendar month, chronological within each month"""
    months: Dict[str, MonthSchedule] = {}
    for day in days:
        key = f"{day.date.year:04d}-{day.date.month:02d}"
        if key not in months:
            months[key] = MonthSchedule(year=day.date.year, month=day.date.month)
        months[key].days.append(day)
    return list(months.values())


def process_yearly_schedule(
    days: Sequence[DaySchedule],
    personnel: Sequence[str],
    config: ScheduleConfig = DEFAULT_CONFIG
) -> YearlySchedule:
    """
    Build the yearly summary and the monthly data of a generated schedule.

    The yearly summary covers the whole window; each month gets its own
    summary computed independently from that month's days only.
    """
    months = group_by_month(days)
    for month in months:
        month.summary = calculate_summary(month.days, personnel, config)
    return YearlySchedule(
        yearly_summary=calculate_summary(days, personnel, config),
        months=months,
    )


def task_spread(summary: TaskSummary, personnel: Sequence[str]) -> int:
    """Max minus min total task count among the given people"""
    totals = [summary[p].total for p in personnel]
    if not totals:
        return 0
    return max(totals) - min(totals)


def personal_overview(
    days: Sequence[DaySchedule],
    personnel: str,
    today: date,
    config: ScheduleConfig = DEFAULT_CONFIG
) -> Dict:
    """
    Personal dashboard data for one person.

    Args:
        days: Generated schedule
        personnel: Person to report on
        today: Reference date
        config: Schedule configuration (critical stations)

    Returns:
        Dict with today's and tomorrow's assignment, the next leave date
        after today, and this month's task and critical task counts
    """
    by_date = {day.date: day for day in days}
    tomorrow = today + timedelta(days=1)

    def assignment_on(current: date) -> Optional[Assignment]:
        day = by_date.get(current)
        return day.get_assignment(personnel) if day else None

    next_leave = None
    for day in days:
        if day.date <= today:
            continue
        assignment = day.get_assignment(personnel)
        if assignment and assignment.shift == ShiftLabel.LEAVE:
            next_leave = day.date
            break

    monthly_tasks = [
        a for day in days
        if day.date.year == today.year and day.date.month == today.month
        for a in day.assignments
        if a.personnel == personnel and a.station
    ]

    return {
        'personnel': personnel,
        'today': assignment_on(today),
        'tomorrow': assignment_on(tomorrow),
        'nextLeaveDate': next_leave,
        'monthlyTasks': len(monthly_tasks),
        'monthlyCriticalTasks': sum(1 for a in monthly_tasks if a.station in config.critical_stations),
    }
