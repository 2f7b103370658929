from __future__ import annotations

import csv
import io
from typing import Iterable, List

from ledger_analytics.records import TAG_DELIMITER, TransactionRecord

COLUMNS = [
    "id",
    "date",
    "amount",
    "kind",
    "category",
    "paymentMethod",
    "notes",
    "tags",
    "creator",
    "createdAt",
    "updatedAt",
    "deleted",
]
REQUIRED_COLUMNS = {"id", "date", "amount", "kind", "category", "paymentMethod", "createdAt"}


def export_records_csv(records: Iterable[TransactionRecord]) -> str:
    """Serialise records one row each, tags joined with ``|`` in sorted order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(COLUMNS)
    for record in records:
        writer.writerow(record_to_row(record))
    return buffer.getvalue()


def record_to_row(record: TransactionRecord) -> List[str]:
    for tag in record.tags:
        if TAG_DELIMITER in tag:
            raise ValueError(
                f"Tag {tag!r} on record {record.id} contains the tag delimiter {TAG_DELIMITER!r}."
            )
    return [
        record.id,
        record.date.isoformat(),
        str(record.amount),
        record.kind,
        record.category,
        record.payment_method,
        record.notes or "",
        TAG_DELIMITER.join(sorted(record.tags)),
        record.created_by,
        record.created_at.isoformat(),
        record.updated_at.isoformat(),
        "true" if record.deleted else "false",
    ]


def parse_records_csv(contents: str) -> List[TransactionRecord]:
    reader = csv.reader(io.StringIO(contents))
    rows = list(reader)
    if not rows:
        raise ValueError("CSV missing header row.")

    fieldnames = [clean_text(name) for name in rows[0]]
    missing = REQUIRED_COLUMNS - set(fieldnames)
    if missing:
        raise ValueError(f"CSV headers missing required fields: {', '.join(sorted(missing))}")

    records: List[TransactionRecord] = []
    for line_number, row in enumerate(rows[1:], start=2):
        if is_blank_row(row):
            continue
        values = row_to_dict(fieldnames, row)
        try:
            records.append(TransactionRecord.from_mapping(values))
        except ValueError as exc:
            raise ValueError(f"Invalid row {line_number}: {exc}") from exc
    return records


def row_to_dict(fieldnames: List[str], row: List[str]) -> dict[str, str]:
    if len(row) < len(fieldnames):
        row = row + [""] * (len(fieldnames) - len(row))
    if len(row) > len(fieldnames):
        row = row[: len(fieldnames)]
    return {name: value for name, value in zip(fieldnames, row) if name}


def clean_text(value: str | None) -> str:
    return value.strip() if value else ""


def is_blank_row(row: List[str]) -> bool:
    return all(not clean_text(value) for value in row)
