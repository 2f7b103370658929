from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Tuple, TypeVar

from ledger_analytics.bucketing import format_day_label
from ledger_analytics.filters import FilterSpec, apply_filters
from ledger_analytics.grouping import calculate_total
from ledger_analytics.records import (
    ZERO,
    TransactionKind,
    TransactionRecord,
    coerce_amount,
    sort_chronologically,
)

HUNDRED = Decimal("100")
DEFAULT_TOP_N = 3

K = TypeVar("K", str, date)


@dataclass(frozen=True)
class CategoryRanking:
    category: str
    total: Decimal
    transaction_count: int
    percentage: Decimal


@dataclass(frozen=True)
class DayRanking:
    date: date
    total: Decimal
    transaction_count: int
    percentage: Decimal


@dataclass(frozen=True)
class DrillDown:
    kind: str
    title: str
    transactions: Tuple[TransactionRecord, ...]
    total: Decimal
    transaction_count: int


def top_categories(
    records: Iterable[TransactionRecord],
    n: int = DEFAULT_TOP_N,
) -> List[CategoryRanking]:
    _validate_limit(n)
    return category_breakdown(records)[:n]


def top_days(
    records: Iterable[TransactionRecord],
    n: int = DEFAULT_TOP_N,
) -> List[DayRanking]:
    _validate_limit(n)
    rows = _rank(records, lambda record: record.date)
    return [
        DayRanking(date=day, total=total, transaction_count=count, percentage=percentage)
        for day, total, count, percentage in rows[:n]
    ]


def category_breakdown(records: Iterable[TransactionRecord]) -> List[CategoryRanking]:
    rows = _rank(records, lambda record: record.category)
    return [
        CategoryRanking(
            category=category,
            total=total,
            transaction_count=count,
            percentage=percentage,
        )
        for category, total, count, percentage in rows
    ]


def category_drill_down(
    records: Iterable[TransactionRecord],
    category: str,
    include_deleted: bool = False,
) -> DrillDown:
    spec = FilterSpec(
        kind=TransactionKind.EXPENSE,
        category=category,
        include_deleted=include_deleted,
    )
    return _drill_down("category", category, apply_filters(records, spec))


def day_drill_down(
    records: Iterable[TransactionRecord],
    day: date,
    include_deleted: bool = False,
) -> DrillDown:
    spec = FilterSpec(kind=TransactionKind.EXPENSE, include_deleted=include_deleted)
    matching = [record for record in apply_filters(records, spec) if record.date == day]
    return _drill_down("day", format_day_label(day), matching)


def _rank(
    records: Iterable[TransactionRecord],
    key_for: Callable[[TransactionRecord], K],
) -> List[Tuple[K, Decimal, int, Decimal]]:
    totals: Dict[K, Decimal] = {}
    counts: Dict[K, int] = {}
    grand_total = ZERO
    for record in records:
        key = key_for(record)
        amount = coerce_amount(record.amount)
        totals[key] = totals.get(key, ZERO) + amount
        counts[key] = counts.get(key, 0) + 1
        grand_total += amount

    # descending total, ties broken by ascending key
    ordered = sorted(totals.items(), key=lambda item: item[0])
    ordered.sort(key=lambda item: item[1], reverse=True)
    return [
        (key, total, counts[key], _percentage(total, grand_total))
        for key, total in ordered
    ]


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole == ZERO:
        return ZERO
    return HUNDRED * part / whole


def _drill_down(
    kind: str,
    title: str,
    records: Iterable[TransactionRecord],
) -> DrillDown:
    ordered = tuple(sort_chronologically(records))
    return DrillDown(
        kind=kind,
        title=title,
        transactions=ordered,
        total=calculate_total(ordered),
        transaction_count=len(ordered),
    )


def _validate_limit(n: int) -> None:
    if n < 0:
        raise ValueError("n must be zero or greater.")
