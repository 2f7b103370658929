from __future__ import annotations

from dataclasses import dataclass
import os

from ledger_analytics.bucketing import Granularity
from ledger_analytics.logging_setup import LOG_LEVEL_ENV
from ledger_analytics.ranking import DEFAULT_TOP_N


@dataclass(frozen=True)
class Settings:
    frontend_origin: str = "http://localhost:3000"
    log_level: str = "INFO"
    top_n: int = DEFAULT_TOP_N
    granularity: str = Granularity.MONTH


def load_settings() -> Settings:
    return Settings(
        frontend_origin=os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"),
        log_level=os.getenv(LOG_LEVEL_ENV, "INFO"),
        top_n=get_top_n(),
        granularity=get_default_granularity(),
    )


def get_top_n() -> int:
    raw = os.getenv("LEDGER_ANALYTICS_TOP_N", str(DEFAULT_TOP_N))
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_TOP_N
    return value if value >= 0 else DEFAULT_TOP_N


def get_default_granularity() -> str:
    raw = os.getenv("LEDGER_ANALYTICS_GRANULARITY", Granularity.MONTH)
    try:
        return Granularity.validate(raw)
    except ValueError:
        return Granularity.MONTH
