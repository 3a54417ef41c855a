from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from database import Base
from errors import ValidationError
from models import Budget, TransactionType
from schemas import BudgetIn, TransactionIn
from services import BudgetService, TransactionService


def test_set_budget_twice_keeps_a_single_document() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        budgets = BudgetService(session)
        data = BudgetIn(category="Groceries", amount=Decimal("300"), month="2024-03")

        first = budgets.set_budget(data)
        second = budgets.set_budget(data)

        count = session.execute(
            select(func.count(Budget.id)).where(
                Budget.category == "Groceries", Budget.month == "2024-03"
            )
        ).scalar_one()
        assert count == 1
        assert first.id == second.id
        assert second.amount == Decimal("300")


def test_set_budget_replaces_amount_and_keeps_created_at() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        budgets = BudgetService(session)
        original = budgets.set_budget(
            BudgetIn(category="Travel", amount=Decimal("200"), month="2024-03")
        )
        created_at = original.created_at

        replaced = budgets.set_budget(
            BudgetIn(category="Travel", amount=Decimal("450.25"), month="2024-03")
        )

        assert replaced.amount == Decimal("450.25")
        assert replaced.created_at == created_at
        assert replaced.updated_at >= created_at


def test_same_category_in_other_month_is_a_separate_budget() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        budgets = BudgetService(session)
        budgets.set_budget(BudgetIn(category="Travel", amount=Decimal("1"), month="2024-03"))
        budgets.set_budget(BudgetIn(category="Travel", amount=Decimal("2"), month="2024-04"))
        budgets.set_budget(BudgetIn(category="Education", amount=Decimal("3"), month="2024-04"))

        april = budgets.list_for_month("2024-04")
        assert [(b.category, b.amount) for b in april] == [
            ("Education", Decimal("3")),
            ("Travel", Decimal("2")),
        ]


def test_budgets_are_only_for_expense_categories() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        with pytest.raises(ValidationError):
            BudgetService(session).set_budget(
                BudgetIn(category="Salary", amount=Decimal("10"), month="2024-01")
            )
        assert session.execute(select(func.count(Budget.id))).scalar_one() == 0


def test_budget_schema_rejects_bad_month_and_amount() -> None:
    with pytest.raises(ValueError):
        BudgetIn(category="Travel", amount=Decimal("10"), month="2024-1")
    with pytest.raises(ValueError):
        BudgetIn(category="Travel", amount=Decimal("0"), month="2024-01")


def test_progress_for_month_uses_that_months_spending() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        txns = TransactionService(session)
        for amount, day in (("60", date(2024, 5, 2)), ("25", date(2024, 5, 20)), ("500", date(2024, 4, 30))):
            txns.create(
                TransactionIn(
                    amount=Decimal(amount),
                    description="Food",
                    category="Food & Dining",
                    date=day,
                    type=TransactionType.expense,
                )
            )
        budgets = BudgetService(session)
        budgets.set_budget(BudgetIn(category="Food & Dining", amount=Decimal("100"), month="2024-05"))
        budgets.set_budget(BudgetIn(category="Healthcare", amount=Decimal("50"), month="2024-05"))

        progress = {p.category: p for p in budgets.progress_for_month("2024-05")}

        assert progress["Food & Dining"].spent == Decimal("85")
        assert progress["Food & Dining"].is_near_limit is True
        assert progress["Food & Dining"].is_over_budget is False
        assert progress["Healthcare"].spent == 0
        assert progress["Healthcare"].remaining == Decimal("50")
