from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from aggregation import (
    CategorySummary,
    MonthlyData,
    compute_category_summary,
    compute_monthly_summary,
)
from budgeting import BudgetProgress, evaluate_budgets
from config import get_settings
from database import store_errors
from errors import NotFound, StoreUnavailable, ValidationError
from insights import Insights, build_insights
from models import (
    EXPENSE_CATEGORIES,
    Budget,
    Transaction,
    TransactionType,
    is_valid_category,
)
from periods import Month, resolve_month
from schemas import BudgetIn, TransactionIn, TransactionUpdate

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _check_category(txn_type: TransactionType, category: str) -> None:
    if not is_valid_category(txn_type, category):
        kind = TransactionType(txn_type).value
        raise ValidationError(f"'{category}' is not a valid {kind} category")


def _as_month(value: Union[str, Month]) -> Month:
    if isinstance(value, Month):
        return value
    try:
        return Month.parse(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class _StoreService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            with store_errors(operation):
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise


class TransactionService(_StoreService):
    def list(self, limit: Optional[int] = None, offset: int = 0) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .offset(offset)
        )
        if limit:
            stmt = stmt.limit(limit)
        with store_errors("find_transactions"):
            return list(self.session.scalars(stmt).all())

    def all(self) -> list[Transaction]:
        stmt = select(Transaction).order_by(Transaction.date.asc(), Transaction.id.asc())
        with store_errors("find_transactions"):
            return list(self.session.scalars(stmt).all())

    def for_month(self, month: Union[str, Month]) -> list[Transaction]:
        month = _as_month(month)
        stmt = (
            select(Transaction)
            .where(Transaction.date.startswith(f"{month.key}-", autoescape=True))
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        with store_errors("find_transactions"):
            return list(self.session.scalars(stmt).all())

    def get(self, transaction_id: int) -> Transaction:
        with store_errors("get_transaction"):
            txn = self.session.get(Transaction, transaction_id)
        if not txn:
            raise NotFound("Transaction not found")
        return txn

    def create(self, data: TransactionIn) -> Transaction:
        _check_category(data.type, data.category)
        txn = Transaction(
            amount=data.amount,
            description=data.description,
            category=data.category,
            date=data.date.isoformat(),
            type=data.type,
        )
        self.session.add(txn)
        self._commit("insert_transaction")
        with store_errors("insert_transaction"):
            self.session.refresh(txn)
        logger.info(f"transaction_created: id={txn.id} type={txn.type.value}")
        return txn

    def update(self, transaction_id: int, data: TransactionUpdate) -> Transaction:
        txn = self.get(transaction_id)
        changes = data.model_dump(exclude_unset=True)
        for field_name, value in changes.items():
            if value is None:
                raise ValidationError(f"{field_name} cannot be null")
        _check_category(
            changes.get("type", txn.type), changes.get("category", txn.category)
        )
        if "date" in changes:
            changes["date"] = changes["date"].isoformat()

        for field_name, value in changes.items():
            setattr(txn, field_name, value)
        txn.updated_at = datetime.utcnow()
        self._commit("update_transaction")
        logger.info(
            f"transaction_updated: id={transaction_id} fields={','.join(sorted(changes))}"
        )
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self._commit("delete_transaction")
        logger.info(f"transaction_deleted: id={transaction_id}")


class BudgetService(_StoreService):
    def list_for_month(self, month: Union[str, Month]) -> list[Budget]:
        month = _as_month(month)
        stmt = (
            select(Budget)
            .where(Budget.month == month.key)
            .order_by(Budget.category.asc())
        )
        with store_errors("find_budgets"):
            return list(self.session.scalars(stmt).all())

    def set_budget(self, data: BudgetIn) -> Budget:
        if data.category not in EXPENSE_CATEGORIES:
            raise ValidationError(
                f"Budgets can only be set for expense categories, got '{data.category}'"
            )
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Budget upsert is not supported on {dialect}")

        now = datetime.utcnow()
        stmt = (
            insert(Budget)
            .values(
                category=data.category,
                amount=data.amount,
                month=data.month,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_update(
                index_elements=["category", "month"],
                set_={"amount": data.amount, "updated_at": now},
            )
        )
        try:
            with store_errors("upsert_budget"):
                self.session.execute(stmt)
        except Exception:
            self.session.rollback()
            raise
        self._commit("upsert_budget")

        with store_errors("upsert_budget"):
            budget = self.session.scalar(
                select(Budget)
                .where(Budget.category == data.category, Budget.month == data.month)
                .execution_options(populate_existing=True)
            )
        logger.info(
            f"budget_set: category={data.category} month={data.month} amount={data.amount}"
        )
        return budget

    def progress_for_month(self, month: Union[str, Month]) -> list[BudgetProgress]:
        month = _as_month(month)
        budgets = self.list_for_month(month)
        spent = compute_category_summary(
            TransactionService(self.session).for_month(month)
        )
        return evaluate_budgets(budgets, spent)


class AnalyticsService:
    """Read-only reporting over the full transaction log.

    With ``degrade_reads`` enabled, an unreachable store yields empty results
    for dashboard reads instead of an error. Nothing else is degraded.
    """

    def __init__(
        self,
        session: Session,
        *,
        degrade_reads: Optional[bool] = None,
        high_average_threshold: Optional[Decimal] = None,
    ) -> None:
        settings = get_settings()
        self.session = session
        self.degrade_reads = (
            settings.degrade_reads if degrade_reads is None else degrade_reads
        )
        self.high_average_threshold = (
            settings.high_average_threshold
            if high_average_threshold is None
            else high_average_threshold
        )
        self.transactions = TransactionService(session)
        self.budgets = BudgetService(session)

    def _degrade(self, operation: str, exc: StoreUnavailable) -> None:
        if not self.degrade_reads:
            raise exc
        logger.warning(f"analytics_degraded: operation={operation} reason={exc}")

    def monthly_summary(self) -> list[MonthlyData]:
        return compute_monthly_summary(self.transactions.all())

    def category_summary(
        self, month: Optional[Union[str, Month]] = None
    ) -> list[CategorySummary]:
        if month is None:
            return compute_category_summary(self.transactions.all())
        return compute_category_summary(self.transactions.for_month(month))

    def dashboard(self) -> dict[str, list]:
        try:
            snapshot = self.transactions.all()
        except StoreUnavailable as exc:
            self._degrade("dashboard", exc)
            return {"monthly_data": [], "category_data": []}
        return {
            "monthly_data": compute_monthly_summary(snapshot),
            "category_data": compute_category_summary(snapshot),
        }

    def insights(self, month: Optional[str] = None) -> Insights:
        budget_month = _as_month(month) if month else resolve_month(None)
        try:
            snapshot = self.transactions.all()
            progress = self.budgets.progress_for_month(budget_month)
        except StoreUnavailable as exc:
            self._degrade("insights", exc)
            return build_insights([], [], [], threshold=self.high_average_threshold)

        monthly = compute_monthly_summary(snapshot)
        if month is None:
            scoped = snapshot
        else:
            scoped = [
                txn for txn in snapshot if txn.date.startswith(f"{budget_month.key}-")
            ]
        return build_insights(
            monthly,
            compute_category_summary(scoped),
            progress,
            threshold=self.high_average_threshold,
        )
