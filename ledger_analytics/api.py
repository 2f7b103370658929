from datetime import date, datetime
from decimal import Decimal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from ledger_analytics.comparison import (
    PercentChange,
    compare_periods,
    report_metrics,
    trend_direction,
)
from ledger_analytics.config import load_settings
from ledger_analytics.filters import ALL, FilterSpec, apply_filters, filter_by_kind
from ledger_analytics.history import HistoryFilters, build_history
from ledger_analytics.logging_setup import configure_logging, get_logger
from ledger_analytics.ranking import category_breakdown, top_categories, top_days
from ledger_analytics.records import (
    DateRange,
    PaymentMethod,
    TransactionKind,
    TransactionRecord,
)
from ledger_analytics.spreadsheet import export_records_csv

settings = load_settings()
configure_logging(settings.log_level)
logger = get_logger("ledger_analytics.api")

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RecordPayload(BaseModel):
    id: str
    date: date
    amount: Decimal
    kind: str
    category: str
    payment_method: str
    notes: str | None = None
    tags: list[str] = []
    created_by: str = ""
    created_at: datetime
    updated_at: datetime | None = None
    deleted: bool = False

    def to_record(self) -> TransactionRecord:
        if self.amount < 0:
            raise ValueError(f"Record {self.id}: amount must be zero or greater.")
        return TransactionRecord(
            id=self.id,
            date=self.date,
            amount=self.amount,
            kind=TransactionKind.validate(self.kind),
            category=self.category,
            payment_method=PaymentMethod.validate(self.payment_method),
            notes=self.notes,
            tags=frozenset(self.tags),
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at or self.created_at,
            deleted=self.deleted,
        )


class RecordsPayload(BaseModel):
    records: list[RecordPayload]


class HistoryPayload(RecordsPayload):
    kind: str = TransactionKind.EXPENSE
    granularity: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    category: str = ALL
    payment_method: str = ALL
    tags: list[str] = []
    search: str | None = None
    include_deleted: bool = False


class RankingPayload(RecordsPayload):
    limit: int | None = None
    include_deleted: bool = False


class PeriodComparisonPayload(RecordsPayload):
    kind: str = TransactionKind.EXPENSE
    start_date: date
    end_date: date
    include_deleted: bool = False


class ReportMetricsPayload(RecordsPayload):
    start_date: date
    end_date: date
    previous_start_date: date | None = None
    previous_end_date: date | None = None
    include_deleted: bool = False


class GroupResponse(BaseModel):
    id: str
    label: str
    start_date: date
    end_date: date
    total: Decimal
    item_count: int
    running_balance: Decimal
    transaction_ids: list[str]


class HistoryResponse(BaseModel):
    kind: str
    granularity: str
    total: Decimal
    item_count: int
    groups: list[GroupResponse]
    record_balances: dict[str, Decimal]


class CategoryRankingResponse(BaseModel):
    category: str
    total: Decimal
    transaction_count: int
    percentage: Decimal


class DayRankingResponse(BaseModel):
    date: date
    total: Decimal
    transaction_count: int
    percentage: Decimal


class ChangeResponse(BaseModel):
    delta: Decimal
    percent: Decimal | None = None
    no_baseline: bool
    trend: str


class PeriodComparisonResponse(BaseModel):
    kind: str
    current_total: Decimal
    previous_total: Decimal
    change: ChangeResponse
    current_start: date
    current_end: date
    previous_start: date
    previous_end: date


class ReportMetricsResponse(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    transaction_count: int
    average_per_day: Decimal
    income_change: ChangeResponse
    expense_change: ChangeResponse
    net_balance_change: ChangeResponse
    current_start: date
    current_end: date
    previous_start: date
    previous_end: date


def bad_request(exc: ValueError) -> HTTPException:
    logger.info("Rejected analytics request: %s", exc)
    return HTTPException(status_code=400, detail=str(exc))


def to_records(payloads: list[RecordPayload]) -> list[TransactionRecord]:
    return [payload.to_record() for payload in payloads]


def to_change_response(change: PercentChange) -> ChangeResponse:
    return ChangeResponse(
        delta=change.delta,
        percent=change.percent,
        no_baseline=change.no_baseline,
        trend=trend_direction(change.delta),
    )


def expense_records(payload: RankingPayload) -> list[TransactionRecord]:
    spec = FilterSpec(
        kind=TransactionKind.EXPENSE,
        include_deleted=payload.include_deleted,
    )
    return apply_filters(to_records(payload.records), spec)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/history", response_model=HistoryResponse)
def history(payload: HistoryPayload) -> HistoryResponse:
    try:
        date_range = None
        if payload.start_date is not None or payload.end_date is not None:
            if payload.start_date is None or payload.end_date is None:
                raise ValueError("start_date and end_date must be provided together.")
            date_range = DateRange(start=payload.start_date, end=payload.end_date)
        filters = HistoryFilters(
            kind=payload.kind,
            granularity=payload.granularity or settings.granularity,
            date_range=date_range,
            category=payload.category,
            payment_method=payload.payment_method,
            tags=frozenset(payload.tags),
            search=payload.search,
            include_deleted=payload.include_deleted,
        )
        view = build_history(to_records(payload.records), filters)
    except ValueError as exc:
        raise bad_request(exc) from exc

    groups = [
        GroupResponse(
            id=group.id,
            label=group.label,
            start_date=group.date_range.start,
            end_date=group.date_range.end,
            total=group.total,
            item_count=group.item_count,
            running_balance=balance.running_balance,
            transaction_ids=[record.id for record in group.transactions],
        )
        for group, balance in zip(view.groups, view.balances)
    ]
    return HistoryResponse(
        kind=filters.kind,
        granularity=filters.granularity,
        total=view.total,
        item_count=view.item_count,
        groups=groups,
        record_balances=view.record_balances,
    )


@app.post("/reports/top-categories", response_model=list[CategoryRankingResponse])
def report_top_categories(payload: RankingPayload) -> list[CategoryRankingResponse]:
    limit = settings.top_n if payload.limit is None else payload.limit
    try:
        rankings = top_categories(expense_records(payload), limit)
    except ValueError as exc:
        raise bad_request(exc) from exc
    return [
        CategoryRankingResponse(
            category=ranking.category,
            total=ranking.total,
            transaction_count=ranking.transaction_count,
            percentage=ranking.percentage,
        )
        for ranking in rankings
    ]


@app.post("/reports/top-days", response_model=list[DayRankingResponse])
def report_top_days(payload: RankingPayload) -> list[DayRankingResponse]:
    limit = settings.top_n if payload.limit is None else payload.limit
    try:
        rankings = top_days(expense_records(payload), limit)
    except ValueError as exc:
        raise bad_request(exc) from exc
    return [
        DayRankingResponse(
            date=ranking.date,
            total=ranking.total,
            transaction_count=ranking.transaction_count,
            percentage=ranking.percentage,
        )
        for ranking in rankings
    ]


@app.post("/reports/category-breakdown", response_model=list[CategoryRankingResponse])
def report_category_breakdown(payload: RankingPayload) -> list[CategoryRankingResponse]:
    try:
        rankings = category_breakdown(expense_records(payload))
    except ValueError as exc:
        raise bad_request(exc) from exc
    return [
        CategoryRankingResponse(
            category=ranking.category,
            total=ranking.total,
            transaction_count=ranking.transaction_count,
            percentage=ranking.percentage,
        )
        for ranking in rankings
    ]


@app.post("/reports/period-comparison", response_model=PeriodComparisonResponse)
def report_period_comparison(payload: PeriodComparisonPayload) -> PeriodComparisonResponse:
    try:
        kind = TransactionKind.validate(payload.kind)
        current_range = DateRange(start=payload.start_date, end=payload.end_date)
        records = filter_by_kind(
            to_records(payload.records), kind, include_deleted=payload.include_deleted
        )
        metrics = compare_periods(records, current_range)
    except ValueError as exc:
        raise bad_request(exc) from exc
    return PeriodComparisonResponse(
        kind=kind,
        current_total=metrics.current_total,
        previous_total=metrics.previous_total,
        change=to_change_response(
            PercentChange(
                delta=metrics.delta,
                percent=metrics.percent,
                no_baseline=metrics.no_baseline,
            )
        ),
        current_start=metrics.current_range.start,
        current_end=metrics.current_range.end,
        previous_start=metrics.previous_range.start,
        previous_end=metrics.previous_range.end,
    )


@app.post("/reports/metrics", response_model=ReportMetricsResponse)
def report_summary_metrics(payload: ReportMetricsPayload) -> ReportMetricsResponse:
    try:
        current_range = DateRange(start=payload.start_date, end=payload.end_date)
        previous_range = None
        if payload.previous_start_date is not None or payload.previous_end_date is not None:
            if payload.previous_start_date is None or payload.previous_end_date is None:
                raise ValueError(
                    "previous_start_date and previous_end_date must be provided together."
                )
            previous_range = DateRange(
                start=payload.previous_start_date, end=payload.previous_end_date
            )
        records = to_records(payload.records)
        metrics = report_metrics(
            filter_by_kind(records, TransactionKind.INCOME, payload.include_deleted),
            filter_by_kind(records, TransactionKind.EXPENSE, payload.include_deleted),
            current_range,
            previous_range,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc
    return ReportMetricsResponse(
        total_income=metrics.total_income,
        total_expense=metrics.total_expense,
        net_balance=metrics.net_balance,
        transaction_count=metrics.transaction_count,
        average_per_day=metrics.average_per_day,
        income_change=to_change_response(metrics.income_change),
        expense_change=to_change_response(metrics.expense_change),
        net_balance_change=to_change_response(metrics.net_balance_change),
        current_start=metrics.current_range.start,
        current_end=metrics.current_range.end,
        previous_start=metrics.previous_range.start,
        previous_end=metrics.previous_range.end,
    )


@app.post("/export/csv")
def export_csv(payload: RecordsPayload) -> Response:
    try:
        contents = export_records_csv(to_records(payload.records))
    except ValueError as exc:
        raise bad_request(exc) from exc
    return Response(content=contents, media_type="text/csv")
