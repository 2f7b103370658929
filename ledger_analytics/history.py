from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional

from ledger_analytics.balances import (
    RunningBalance,
    record_running_balances,
    running_balances,
)
from ledger_analytics.bucketing import Granularity
from ledger_analytics.comparison import current_month_range
from ledger_analytics.filters import ALL, FilterSpec, apply_filters
from ledger_analytics.grouping import TransactionGroup, group_records
from ledger_analytics.logging_setup import get_logger
from ledger_analytics.records import ZERO, DateRange, TransactionKind, TransactionRecord

logger = get_logger("ledger_analytics.history")


@dataclass(frozen=True)
class HistoryFilters:
    kind: str = TransactionKind.EXPENSE
    granularity: str = Granularity.MONTH
    date_range: Optional[DateRange] = None
    category: Optional[str] = ALL
    payment_method: Optional[str] = ALL
    tags: FrozenSet[str] = field(default_factory=frozenset)
    search: Optional[str] = None
    include_deleted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TransactionKind.validate(self.kind))
        object.__setattr__(self, "granularity", Granularity.validate(self.granularity))
        if isinstance(self.tags, str):
            raise ValueError("tags must be a collection of tag names, not a string.")

    def to_filter_spec(self) -> FilterSpec:
        return FilterSpec(
            date_range=self.date_range,
            category=self.category,
            payment_method=self.payment_method,
            tags=self.tags,
            search=self.search,
            kind=self.kind,
            include_deleted=self.include_deleted,
        )


@dataclass(frozen=True)
class HistoryView:
    groups: List[TransactionGroup]
    balances: List[RunningBalance]
    record_balances: Dict[str, Decimal]
    total: Decimal
    item_count: int


def build_history(
    records: Iterable[TransactionRecord],
    filters: HistoryFilters,
) -> HistoryView:
    filtered = apply_filters(records, filters.to_filter_spec())
    groups = group_records(filtered, filters.granularity)
    balances = running_balances(groups)
    total = balances[-1].running_balance if balances else ZERO
    logger.debug(
        "History for %s by %s: %d records, %d groups",
        filters.kind,
        filters.granularity,
        len(filtered),
        len(groups),
    )
    return HistoryView(
        groups=groups,
        balances=balances,
        record_balances=record_running_balances(groups),
        total=total,
        item_count=len(filtered),
    )


def default_history_filters(today: date) -> HistoryFilters:
    return HistoryFilters(date_range=current_month_range(today))
