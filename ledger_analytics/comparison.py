from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from ledger_analytics.grouping import calculate_total
from ledger_analytics.records import ONE_DAY, ZERO, DateRange, TransactionRecord

HUNDRED = Decimal("100")


class Trend:
    INCREASED = "increased"
    DECREASED = "decreased"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class PercentChange:
    """Change between two totals.

    ``percent`` is ``None`` exactly when ``no_baseline`` is set: the previous
    total was zero while the current one was not, so no ratio exists.
    """

    delta: Decimal
    percent: Optional[Decimal]
    no_baseline: bool = False


@dataclass(frozen=True)
class PeriodMetrics:
    current_total: Decimal
    previous_total: Decimal
    delta: Decimal
    percent: Optional[Decimal]
    no_baseline: bool
    current_range: DateRange
    previous_range: DateRange


@dataclass(frozen=True)
class ReportMetrics:
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    transaction_count: int
    average_per_day: Decimal
    income_change: PercentChange
    expense_change: PercentChange
    net_balance_change: PercentChange
    current_range: DateRange
    previous_range: DateRange


def previous_period(current: DateRange) -> DateRange:
    end = current.start - ONE_DAY
    start = end - timedelta(days=current.days - 1)
    return DateRange(start=start, end=end)


def compare(current_total: Decimal, previous_total: Decimal) -> PercentChange:
    delta = current_total - previous_total
    if previous_total == ZERO:
        if current_total == ZERO:
            return PercentChange(delta=delta, percent=ZERO)
        return PercentChange(delta=delta, percent=None, no_baseline=True)
    return PercentChange(delta=delta, percent=HUNDRED * delta / abs(previous_total))


def compare_periods(
    records: Iterable[TransactionRecord],
    current_range: DateRange,
) -> PeriodMetrics:
    """Total ``records`` inside ``current_range`` and the range just before it.

    Callers pass records of a single kind; amounts are summed as magnitudes.
    """
    items = list(records)
    previous_range = previous_period(current_range)
    current_total = calculate_total(_within(items, current_range))
    previous_total = calculate_total(_within(items, previous_range))
    change = compare(current_total, previous_total)
    return PeriodMetrics(
        current_total=current_total,
        previous_total=previous_total,
        delta=change.delta,
        percent=change.percent,
        no_baseline=change.no_baseline,
        current_range=current_range,
        previous_range=previous_range,
    )


def report_metrics(
    income_records: Iterable[TransactionRecord],
    expense_records: Iterable[TransactionRecord],
    current_range: DateRange,
    previous_range: Optional[DateRange] = None,
) -> ReportMetrics:
    if previous_range is None:
        previous_range = previous_period(current_range)
    incomes = list(income_records)
    expenses = list(expense_records)

    current_income = _within(incomes, current_range)
    current_expense = _within(expenses, current_range)
    total_income = calculate_total(current_income)
    total_expense = calculate_total(current_expense)
    previous_income = calculate_total(_within(incomes, previous_range))
    previous_expense = calculate_total(_within(expenses, previous_range))

    net_balance = total_income - total_expense
    previous_net = previous_income - previous_expense
    average_per_day = (total_income + total_expense) / current_range.days

    return ReportMetrics(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=net_balance,
        transaction_count=len(current_income) + len(current_expense),
        average_per_day=average_per_day,
        income_change=compare(total_income, previous_income),
        expense_change=compare(total_expense, previous_expense),
        net_balance_change=compare(net_balance, previous_net),
        current_range=current_range,
        previous_range=previous_range,
    )


def trend_direction(delta: Decimal) -> str:
    if delta > ZERO:
        return Trend.INCREASED
    if delta < ZERO:
        return Trend.DECREASED
    return Trend.NEUTRAL


def month_range(year: int, month: int) -> DateRange:
    last_day = monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def year_range(year: int) -> DateRange:
    return DateRange(start=date(year, 1, 1), end=date(year, 12, 31))


def current_month_range(today: date) -> DateRange:
    return month_range(today.year, today.month)


def current_year_range(today: date) -> DateRange:
    return year_range(today.year)


def last_days_range(days: int, today: date) -> DateRange:
    if days < 0:
        raise ValueError("days must be zero or greater.")
    return DateRange(start=today - timedelta(days=days), end=today)


def is_valid_date_range(start: Optional[date], end: Optional[date]) -> bool:
    if start is None or end is None:
        return False
    return start <= end


def _within(
    records: Iterable[TransactionRecord],
    date_range: DateRange,
) -> List[TransactionRecord]:
    return [record for record in records if date_range.contains(record.date)]
