from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]

NOT_AVAILABLE = "N/A"


def _as_date(d: DateLike) -> date:
    if isinstance(d, datetime):
        return d.date()
    return d


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def format_duration(start_date: Optional[DateLike], end_date: Optional[DateLike]) -> str:
    """
    Human readable lease length, e.g. "3 months" or "2 months, 5 days".

    Display only. The day part is the total day count modulo 30, which does
    not follow real month lengths; billing never reads this value.
    """
    if start_date is None or end_date is None:
        return NOT_AVAILABLE

    start = _as_date(start_date)
    end = _as_date(end_date)

    delta = relativedelta(end, start)
    months = delta.years * 12 + delta.months
    total_days = (end - start).days

    if months <= 0:
        return f"{total_days} days"

    days = total_days % 30
    if days == 0:
        return _plural(months, "month")

    return f"{_plural(months, 'month')}, {_plural(days, 'day')}"
