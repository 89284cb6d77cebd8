import calendar
from datetime import date, datetime, time, timedelta
from enum import Enum


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"


def period_window(period: BudgetPeriod, as_of: date) -> tuple[date, date]:
    """Inclusive first and last day of the period containing ``as_of``. Weeks start on Sunday."""
    if period is BudgetPeriod.MONTHLY:
        last_day = calendar.monthrange(as_of.year, as_of.month)[1]
        return as_of.replace(day=1), as_of.replace(day=last_day)
    if period is BudgetPeriod.WEEKLY:
        # date.weekday(): Monday=0 .. Sunday=6
        start = as_of - timedelta(days=(as_of.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if period is BudgetPeriod.YEARLY:
        return date(as_of.year, 1, 1), date(as_of.year, 12, 31)
    raise ValueError(f"Unhandled budget period: {period!r}")


def clip_window(
    window: tuple[date, date],
    start_date: date,
    end_date: date | None,
) -> tuple[date, date] | None:
    start = max(window[0], start_date)
    end = window[1] if end_date is None else min(window[1], end_date)
    if start > end:
        return None
    return start, end


def window_bounds(window: tuple[date, date]) -> tuple[datetime, datetime]:
    """Half-open datetime range covering the inclusive date window."""
    return (
        datetime.combine(window[0], time.min),
        datetime.combine(window[1] + timedelta(days=1), time.min),
    )


def month_window(as_of: date) -> tuple[date, date]:
    return period_window(BudgetPeriod.MONTHLY, as_of)
