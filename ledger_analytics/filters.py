from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from ledger_analytics.records import (
    DateRange,
    PaymentMethod,
    TransactionKind,
    TransactionRecord,
)

ALL = "all"


@dataclass(frozen=True)
class FilterSpec:
    """Criteria a record must satisfy to be included in an analytics call.

    Every field except ``include_deleted`` is optional. ``category`` and
    ``payment_method`` accept ``"all"`` (or ``None``) to disable the axis.
    ``tags`` lists tags the record must carry, all of them. ``search`` is a
    case-insensitive substring looked up in the category, the notes and every
    tag; any hit is a match.
    """

    date_range: Optional[DateRange] = None
    category: Optional[str] = None
    payment_method: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    search: Optional[str] = None
    kind: Optional[str] = None
    include_deleted: bool = False

    def __post_init__(self) -> None:
        if self.payment_method is not None and self.payment_method != ALL:
            object.__setattr__(
                self, "payment_method", PaymentMethod.validate(self.payment_method)
            )
        if self.kind is not None:
            object.__setattr__(self, "kind", TransactionKind.validate(self.kind))
        if isinstance(self.tags, str):
            raise ValueError("tags must be a collection of tag names, not a string.")
        object.__setattr__(self, "tags", frozenset(self.tags))


def matches(record: TransactionRecord, spec: FilterSpec) -> bool:
    if record.deleted and not spec.include_deleted:
        return False
    if spec.kind is not None and record.kind != spec.kind:
        return False
    if spec.search and not _matches_search(record, spec.search):
        return False
    if spec.date_range is not None and not spec.date_range.contains(record.date):
        return False
    if spec.category is not None and spec.category != ALL:
        if record.category != spec.category:
            return False
    if spec.payment_method is not None and spec.payment_method != ALL:
        if record.payment_method != spec.payment_method:
            return False
    if spec.tags and not spec.tags <= record.tags:
        return False
    return True


def apply_filters(
    records: Iterable[TransactionRecord], spec: FilterSpec
) -> List[TransactionRecord]:
    return [record for record in records if matches(record, spec)]


def filter_by_kind(
    records: Iterable[TransactionRecord],
    kind: str,
    include_deleted: bool = False,
) -> List[TransactionRecord]:
    return apply_filters(records, FilterSpec(kind=kind, include_deleted=include_deleted))


def sort_newest_first(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    return sorted(records, key=lambda record: record.sort_key, reverse=True)


def _matches_search(record: TransactionRecord, search: str) -> bool:
    needle = search.lower()
    if needle in record.category.lower():
        return True
    if record.notes and needle in record.notes.lower():
        return True
    return any(needle in tag.lower() for tag in record.tags)
