"""Aggregation of a flat transaction log into monthly and per-category totals.

Both computations are pure: they accept any iterable of records exposing
``amount``, ``type``, ``category`` and ``date`` (ORM rows or plain objects)
and never touch the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Union

from errors import DataIntegrityError
from models import TransactionType
from periods import month_key

ZERO = Decimal("0")


class TransactionLike(Protocol):
    amount: Union[Decimal, int, float]
    type: Union[TransactionType, str]
    category: str
    date: object


@dataclass(frozen=True)
class MonthlyData:
    month: str
    income: Decimal
    expenses: Decimal
    net: Decimal


@dataclass(frozen=True)
class CategorySummary:
    category: str
    amount: Decimal
    count: int


def _as_decimal(value: Union[Decimal, int, float]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _txn_type(record: TransactionLike) -> TransactionType:
    return TransactionType(record.type)


def _record_month(record: TransactionLike) -> str:
    try:
        return month_key(record.date)
    except ValueError as exc:
        ident = getattr(record, "id", None)
        raise DataIntegrityError(
            f"Transaction {ident if ident is not None else '?'} has unparseable date {record.date!r}"
        ) from exc


def compute_monthly_summary(transactions: Iterable[TransactionLike]) -> list[MonthlyData]:
    totals: dict[str, dict[TransactionType, Decimal]] = {}
    for record in transactions:
        month = _record_month(record)
        bucket = totals.setdefault(
            month, {TransactionType.income: ZERO, TransactionType.expense: ZERO}
        )
        bucket[_txn_type(record)] += _as_decimal(record.amount)

    summary: list[MonthlyData] = []
    for month in sorted(totals):
        income = totals[month][TransactionType.income]
        expenses = totals[month][TransactionType.expense]
        summary.append(
            MonthlyData(month=month, income=income, expenses=expenses, net=income - expenses)
        )
    return summary


def compute_category_summary(
    transactions: Iterable[TransactionLike],
) -> list[CategorySummary]:
    amounts: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for record in transactions:
        if _txn_type(record) != TransactionType.expense:
            continue
        amounts[record.category] = amounts.get(record.category, ZERO) + _as_decimal(
            record.amount
        )
        counts[record.category] = counts.get(record.category, 0) + 1

    ordered = sorted(amounts, key=lambda name: (-amounts[name], name))
    return [
        CategorySummary(category=name, amount=amounts[name], count=counts[name])
        for name in ordered
    ]
