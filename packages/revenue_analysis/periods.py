"""Analysis-period resolution, record filtering and monthly aggregation."""

from __future__ import annotations

import calendar
import datetime as dt
from collections.abc import Collection, Iterable
from decimal import Decimal
from enum import StrEnum

from .models import FinancialRecord, MonthlyTotal


class DateRangeOption(StrEnum):
    MONTHS_3 = "3M"
    MONTHS_6 = "6M"
    MONTHS_9 = "9M"
    YEAR_1 = "1Y"
    CUSTOM = "CUSTOM"


_MONTHS_BACK: dict[DateRangeOption, int] = {
    DateRangeOption.MONTHS_3: 3,
    DateRangeOption.MONTHS_6: 6,
    DateRangeOption.MONTHS_9: 9,
    DateRangeOption.YEAR_1: 12,
}
_DEFAULT_MONTHS_BACK = 6


def subtract_months(day: dt.date, months: int) -> dt.date:
    """Shift ``day`` back by ``months``, clamping to the target month's length."""

    total = day.year * 12 + (day.month - 1) - months
    year, month0 = divmod(total, 12)
    month = month0 + 1
    last = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day.day, last))


def start_of_month(day: dt.date) -> dt.date:
    return day.replace(day=1)


def end_of_month(day: dt.date) -> dt.date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def resolve_date_range(
    option: DateRangeOption | str,
    *,
    today: dt.date | None = None,
    custom_start: dt.date | None = None,
    custom_end: dt.date | None = None,
) -> tuple[dt.date, dt.date]:
    """Return the inclusive ``(start, end)`` for an analysis period.

    Relative options count back from ``today`` (default: the current date).
    Both bounds are widened to whole months: ``start`` to the first day of its
    month and ``end`` to the last day of its month. ``CUSTOM`` falls back to
    six months back / ``today`` for missing bounds.
    """

    today = today or dt.date.today()
    try:
        opt = DateRangeOption(option)
    except ValueError:
        opt = DateRangeOption.MONTHS_6

    end = today
    if opt is DateRangeOption.CUSTOM:
        start = custom_start or subtract_months(today, _DEFAULT_MONTHS_BACK)
        end = custom_end or today
    else:
        start = subtract_months(today, _MONTHS_BACK.get(opt, _DEFAULT_MONTHS_BACK))

    return start_of_month(start), end_of_month(end)


def filter_records(
    records: Iterable[FinancialRecord],
    *,
    start: dt.date | None = None,
    end: dt.date | None = None,
    revenue_types: Collection[str] | None = None,
) -> list[FinancialRecord]:
    """Keep records within ``[start, end]`` whose type is selected.

    An empty or missing ``revenue_types`` selects every type.
    """

    selected = set(revenue_types) if revenue_types else None
    out: list[FinancialRecord] = []
    for record in records:
        if start is not None and record.date < start:
            continue
        if end is not None and record.date > end:
            continue
        if selected is not None and record.revenue_type not in selected:
            continue
        out.append(record)
    return out


def aggregate_monthly(records: Iterable[FinancialRecord]) -> list[MonthlyTotal]:
    """Sum amounts per ``(YYYY-MM, revenue_type)``.

    Output is ordered by month; within a month, revenue types keep the order
    in which they were first seen across the input.
    """

    type_order: dict[str, int] = {}
    totals: dict[tuple[str, str], Decimal] = {}
    for record in records:
        type_order.setdefault(record.revenue_type, len(type_order))
        key = (f"{record.date:%Y-%m}", record.revenue_type)
        totals[key] = totals.get(key, Decimal(0)) + record.amount

    keys = sorted(totals, key=lambda k: (k[0], type_order[k[1]]))
    return [MonthlyTotal(month=m, revenue_type=t, amount=totals[(m, t)]) for m, t in keys]


__all__ = [
    "DateRangeOption",
    "subtract_months",
    "start_of_month",
    "end_of_month",
    "resolve_date_range",
    "filter_records",
    "aggregate_monthly",
]
