from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class ExpenseCategory(str, Enum):
    food_dining = "Food & Dining"
    transportation = "Transportation"
    shopping = "Shopping"
    entertainment = "Entertainment"
    bills_utilities = "Bills & Utilities"
    healthcare = "Healthcare"
    education = "Education"
    travel = "Travel"
    groceries = "Groceries"
    other = "Other"


class IncomeCategory(str, Enum):
    salary = "Salary"
    freelance = "Freelance"
    investment = "Investment"
    business = "Business"
    gift = "Gift"
    refund = "Refund"
    bonus = "Bonus"
    commission = "Commission"
    rental_income = "Rental Income"
    other = "Other"


EXPENSE_CATEGORIES: tuple[str, ...] = tuple(c.value for c in ExpenseCategory)
INCOME_CATEGORIES: tuple[str, ...] = tuple(c.value for c in IncomeCategory)


def categories_for_type(txn_type: TransactionType) -> tuple[str, ...]:
    if TransactionType(txn_type) == TransactionType.income:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def is_valid_category(txn_type: TransactionType, category: str) -> bool:
    return category in categories_for_type(txn_type)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    # ISO YYYY-MM-DD text, parsed during aggregation
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_type_category", "type", "category"),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)

    __table_args__ = (
        UniqueConstraint("category", "month", name="uq_budget_category_month"),
        Index("ix_budget_month", "month"),
        CheckConstraint("amount > 0", name="ck_budget_amount_positive"),
    )
