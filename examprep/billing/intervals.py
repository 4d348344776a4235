"""Plan interval arithmetic."""

import calendar
from datetime import datetime
from typing import Optional

from examprep.models.plan import PlanInterval

INTERVAL_MONTHS = {
    PlanInterval.MONTHLY: 1,
    PlanInterval.QUARTERLY: 3,
    PlanInterval.BIANNUALLY: 6,
    PlanInterval.YEARLY: 12,
}


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month (Jan 31 + 1 -> Feb 28/29)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calculate_end_date(interval: PlanInterval, start: datetime) -> Optional[datetime]:
    """
    End of one billing period starting at `start`.

    Returns None for LIFETIME plans (never expires).
    """
    if interval == PlanInterval.LIFETIME:
        return None
    try:
        months = INTERVAL_MONTHS[PlanInterval(interval)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown plan interval: {interval}") from None
    return add_months(start, months)
