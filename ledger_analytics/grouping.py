from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from ledger_analytics.bucketing import Granularity, bucket_key, bucket_label
from ledger_analytics.filters import filter_by_kind
from ledger_analytics.logging_setup import get_logger
from ledger_analytics.records import (
    ZERO,
    DateRange,
    TransactionRecord,
    coerce_amount,
    sort_chronologically,
)

logger = get_logger("ledger_analytics.grouping")


@dataclass(frozen=True)
class TransactionGroup:
    id: str
    label: str
    date_range: DateRange
    transactions: Tuple[TransactionRecord, ...]
    total: Decimal
    item_count: int


def group_records(
    records: Iterable[TransactionRecord],
    granularity: str,
) -> List[TransactionGroup]:
    normalized = Granularity.validate(granularity)
    ordered = sort_chronologically(records)

    members_by_key: Dict[str, List[TransactionRecord]] = {}
    for record in ordered:
        members_by_key.setdefault(bucket_key(record.date, normalized), []).append(record)

    groups = [
        _build_group(key, members, normalized)
        for key, members in members_by_key.items()
    ]
    groups.sort(key=lambda group: group.date_range.start)
    logger.debug(
        "Grouped %d records into %d %s buckets", len(ordered), len(groups), normalized
    )
    return groups


def calculate_total(records: Iterable[TransactionRecord]) -> Decimal:
    total = ZERO
    for record in records:
        total += coerce_amount(record.amount)
    return total


def calculate_average(records: Iterable[TransactionRecord]) -> Decimal:
    items = list(records)
    if not items:
        return ZERO
    return calculate_total(items) / len(items)


def distinct_categories(
    records: Iterable[TransactionRecord],
    kind: str,
) -> List[str]:
    return sorted({record.category for record in filter_by_kind(records, kind)})


def distinct_tags(records: Iterable[TransactionRecord]) -> List[str]:
    tags = set()
    for record in records:
        tags.update(record.tags)
    return sorted(tags)


def _build_group(
    key: str,
    members: List[TransactionRecord],
    granularity: str,
) -> TransactionGroup:
    # members arrive sorted, so the first and last carry the extreme dates
    return TransactionGroup(
        id=key,
        label=bucket_label(key, granularity),
        date_range=DateRange(start=members[0].date, end=members[-1].date),
        transactions=tuple(members),
        total=calculate_total(members),
        item_count=len(members),
    )
