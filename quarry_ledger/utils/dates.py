from datetime import date, datetime, time
from typing import Tuple


def day_start(day: date) -> datetime:
    """Naive UTC midnight of ``day``, the form receipts and expenses are stored in."""
    return datetime.combine(day, time.min)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the following month."""
    first = date(year, month, 1)
    following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, following
