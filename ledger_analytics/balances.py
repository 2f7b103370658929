from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from ledger_analytics.grouping import TransactionGroup
from ledger_analytics.records import ZERO, coerce_amount


@dataclass(frozen=True)
class RunningBalance:
    group_id: str
    running_balance: Decimal


def running_balances(groups: Iterable[TransactionGroup]) -> List[RunningBalance]:
    """Cumulative group totals; ``groups`` must be in chronological order."""
    balance = ZERO
    balances: List[RunningBalance] = []
    for group in groups:
        balance += coerce_amount(group.total)
        balances.append(RunningBalance(group_id=group.id, running_balance=balance))
    return balances


def record_running_balances(groups: Iterable[TransactionGroup]) -> Dict[str, Decimal]:
    balance = ZERO
    balances: Dict[str, Decimal] = {}
    for group in groups:
        for record in group.transactions:
            balance += coerce_amount(record.amount)
            balances[record.id] = balance
    return balances
