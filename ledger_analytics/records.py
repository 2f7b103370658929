from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
import re
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional

ZERO = Decimal("0")
ONE_DAY = timedelta(days=1)
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Tags are stored joined by TAG_DELIMITER, so a tag must not contain it.
TAG_DELIMITER = "|"


class TransactionKind:
    INCOME = "income"
    EXPENSE = "expense"
    values = {INCOME, EXPENSE}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid transaction kind.")
        return normalized


class PaymentMethod:
    CASH = "cash"
    CARD = "card"
    values = {CASH, CARD}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid payment method.")
        return normalized


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("start must be on or before end.")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def from_iso(cls, start: str, end: str) -> "DateRange":
        return cls(start=parse_iso_date(start), end=parse_iso_date(end))


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    date: date
    amount: Decimal
    kind: str
    category: str
    payment_method: str
    created_at: datetime
    updated_at: datetime
    created_by: str = ""
    notes: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    deleted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", normalize_timestamp(self.created_at))
        object.__setattr__(self, "updated_at", normalize_timestamp(self.updated_at))

    @property
    def signed_amount(self) -> Decimal:
        amount = coerce_amount(self.amount)
        return amount if self.kind == TransactionKind.INCOME else -amount

    @property
    def sort_key(self) -> tuple[date, datetime]:
        return (self.date, self.created_at)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        """Build a record from loosely typed values.

        Dates may be ``date`` objects or ``YYYY-MM-DD`` strings, timestamps may be
        ``datetime`` objects or ISO 8601 strings, and ``tags`` may be an iterable
        or a ``|``-delimited string. Keys use the spreadsheet column names
        (``paymentMethod``, ``createdAt`` ...) or their snake_case equivalents.
        """
        amount = parse_amount(_lookup(data, "amount"))
        if amount < ZERO:
            raise ValueError("amount must be zero or greater.")
        created_at = parse_timestamp(_lookup(data, "created_at", "createdAt"))
        updated_raw = _lookup(data, "updated_at", "updatedAt", required=False)
        return cls(
            id=str(_lookup(data, "id")),
            date=parse_iso_date(_lookup(data, "date")),
            amount=amount,
            kind=TransactionKind.validate(str(_lookup(data, "kind", "type"))),
            category=str(_lookup(data, "category")),
            payment_method=PaymentMethod.validate(
                str(_lookup(data, "payment_method", "paymentMethod", "account"))
            ),
            notes=_lookup(data, "notes", required=False) or None,
            tags=parse_tags(_lookup(data, "tags", required=False)),
            created_by=str(
                _lookup(data, "created_by", "createdBy", "creator", required=False) or ""
            ),
            created_at=created_at,
            updated_at=parse_timestamp(updated_raw) if updated_raw else created_at,
            deleted=parse_flag(_lookup(data, "deleted", required=False)),
        )


def parse_iso_date(value: date | str) -> date:
    if isinstance(value, datetime):
        raise ValueError("Date must not carry a time component.")
    if isinstance(value, date):
        return value
    cleaned = value.strip() if isinstance(value, str) else ""
    if not ISO_DATE_PATTERN.match(cleaned):
        raise ValueError(f"Date must be in YYYY-MM-DD format: {value!r}")
    try:
        return date.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError(f"Date must be in YYYY-MM-DD format: {value!r}") from exc


def parse_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    cleaned = value.strip() if isinstance(value, str) else ""
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError(f"Timestamp must be ISO 8601: {value!r}") from exc


def normalize_timestamp(value: datetime) -> datetime:
    """Return ``value`` as a naive UTC timestamp.

    Aware timestamps are converted to UTC and stripped of their offset; naive
    ones are taken to be UTC already, so records built from either form sort
    together.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_amount(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("Amount must be numeric.")
    try:
        amount = coerce_amount(value)
    except InvalidOperation as exc:
        raise ValueError(f"Amount must be numeric: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError("Amount must be finite.")
    return amount


def parse_tags(value: Iterable[str] | str | None) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        if not value:
            return frozenset()
        return frozenset(value.split(TAG_DELIMITER))
    return frozenset(str(tag) for tag in value)


def parse_flag(value: bool | str | int | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    normalized = value.strip().lower()
    if normalized in {"true", "1", "yes"}:
        return True
    if normalized in {"false", "0", "no", ""}:
        return False
    raise ValueError(f"Invalid boolean flag: {value!r}")


def sort_chronologically(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    return sorted(records, key=lambda record: record.sort_key)


def _lookup(data: Mapping[str, Any], *keys: str, required: bool = True) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    if required:
        raise ValueError(f"Missing field: {keys[0]}")
    return None


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
