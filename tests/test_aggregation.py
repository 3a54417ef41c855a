from decimal import Decimal

import pytest

from aggregation import (
    CategorySummary,
    MonthlyData,
    compute_category_summary,
    compute_monthly_summary,
)
from errors import DataIntegrityError
from models import Transaction, TransactionType


def txn(amount: str, type: str, category: str, date: str, id: int = None) -> Transaction:
    return Transaction(
        id=id,
        amount=Decimal(amount),
        type=TransactionType(type),
        category=category,
        description=category,
        date=date,
    )


SAMPLE = [
    txn("50", "expense", "Food", "2024-01-05"),
    txn("30", "expense", "Food", "2024-01-20"),
    txn("1000", "income", "Salary", "2024-01-01"),
]


def test_single_month_scenario() -> None:
    assert compute_monthly_summary(SAMPLE) == [
        MonthlyData(
            month="2024-01",
            income=Decimal("1000"),
            expenses=Decimal("80"),
            net=Decimal("920"),
        )
    ]
    assert compute_category_summary(SAMPLE) == [
        CategorySummary(category="Food", amount=Decimal("80"), count=2)
    ]


def test_empty_input_yields_empty_sequences() -> None:
    assert compute_monthly_summary([]) == []
    assert compute_category_summary([]) == []


def test_months_are_ascending_and_missing_type_is_zero() -> None:
    records = [
        txn("20", "expense", "Travel", "2024-03-02"),
        txn("500", "income", "Salary", "2023-12-31"),
        txn("40", "expense", "Shopping", "2024-01-15"),
    ]

    monthly = compute_monthly_summary(records)

    assert [m.month for m in monthly] == ["2023-12", "2024-01", "2024-03"]
    assert monthly[0].expenses == 0
    assert monthly[0].net == Decimal("500")
    assert monthly[1].income == 0
    assert monthly[1].net == Decimal("-40")


def test_monthly_totals_match_transaction_totals() -> None:
    records = [
        txn("12.34", "expense", "Groceries", "2024-02-01"),
        txn("0.66", "expense", "Groceries", "2024-02-28"),
        txn("99.99", "expense", "Travel", "2024-05-10"),
        txn("2500", "income", "Salary", "2024-02-25"),
        txn("150.50", "income", "Freelance", "2024-05-03"),
    ]

    monthly = compute_monthly_summary(records)

    income_total = sum(
        (r.amount for r in records if r.type == TransactionType.income), Decimal("0")
    )
    expense_total = sum(
        (r.amount for r in records if r.type == TransactionType.expense), Decimal("0")
    )
    assert sum((m.income for m in monthly), Decimal("0")) == income_total
    assert sum((m.expenses for m in monthly), Decimal("0")) == expense_total
    for m in monthly:
        assert m.net == m.income - m.expenses


def test_datetime_text_is_grouped_by_its_month() -> None:
    records = [
        txn("10", "expense", "Food", "2024-04-30T23:15:00"),
        txn("5", "expense", "Food", "2024-04-01T00:00:00Z"),
    ]

    monthly = compute_monthly_summary(records)

    assert [(m.month, m.expenses) for m in monthly] == [("2024-04", Decimal("15"))]


def test_unparseable_date_fails_whole_computation() -> None:
    records = [
        txn("10", "expense", "Food", "2024-01-01", id=1),
        txn("10", "expense", "Food", "not-a-date", id=7),
    ]

    with pytest.raises(DataIntegrityError, match="7"):
        compute_monthly_summary(records)


def test_category_summary_ignores_income_and_sorts_descending() -> None:
    records = [
        txn("15", "expense", "Transportation", "2024-01-02"),
        txn("80", "expense", "Groceries", "2024-01-03"),
        txn("3000", "income", "Salary", "2024-01-01"),
        txn("25", "expense", "Transportation", "2024-01-09"),
    ]

    summary = compute_category_summary(records)

    assert [(s.category, s.amount, s.count) for s in summary] == [
        ("Groceries", Decimal("80"), 1),
        ("Transportation", Decimal("40"), 2),
    ]
    assert sum(s.count for s in summary) == 3


def test_equal_amounts_are_ordered_by_category_name() -> None:
    records = [
        txn("40", "expense", "Travel", "2024-01-02"),
        txn("40", "expense", "Education", "2024-01-03"),
        txn("60", "expense", "Shopping", "2024-01-04"),
    ]

    summary = compute_category_summary(records)

    assert [s.category for s in summary] == ["Shopping", "Education", "Travel"]


def test_plain_records_with_string_types_are_accepted() -> None:
    class Record:
        def __init__(self, amount, type, category, date):
            self.amount = amount
            self.type = type
            self.category = category
            self.date = date

    records = [
        Record(12.5, "expense", "Food & Dining", "2024-06-01"),
        Record(7, "expense", "Food & Dining", "2024-06-02"),
    ]

    assert compute_category_summary(records) == [
        CategorySummary(category="Food & Dining", amount=Decimal("19.5"), count=2)
    ]
