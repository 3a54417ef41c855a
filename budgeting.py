from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from aggregation import CategorySummary

ZERO = Decimal("0")
HUNDRED = Decimal("100")
NEAR_LIMIT_PERCENT = Decimal("80")


class BudgetLike(Protocol):
    category: str
    amount: Decimal
    month: str


@dataclass(frozen=True)
class BudgetProgress:
    budget_id: Optional[int]
    category: str
    month: str
    budget: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    display_percentage: Decimal
    is_over_budget: bool
    is_near_limit: bool

    @property
    def is_alert(self) -> bool:
        return self.is_over_budget or self.is_near_limit


def evaluate_budget(budget: BudgetLike, spent: Decimal) -> BudgetProgress:
    amount = Decimal(budget.amount)
    # amount > 0 is guaranteed by the budget schema and table constraint
    percentage = spent / amount * HUNDRED
    return BudgetProgress(
        budget_id=getattr(budget, "id", None),
        category=budget.category,
        month=budget.month,
        budget=amount,
        spent=spent,
        remaining=max(ZERO, amount - spent),
        percentage=percentage,
        display_percentage=min(HUNDRED, max(ZERO, percentage)),
        is_over_budget=spent > amount,
        is_near_limit=NEAR_LIMIT_PERCENT < percentage <= HUNDRED,
    )


def evaluate_budgets(
    budgets: Iterable[BudgetLike], category_summary: Sequence[CategorySummary]
) -> list[BudgetProgress]:
    spent_by_category = {item.category: item.amount for item in category_summary}
    return [
        evaluate_budget(budget, spent_by_category.get(budget.category, ZERO))
        for budget in budgets
    ]


def budget_alerts(progress: Iterable[BudgetProgress]) -> list[BudgetProgress]:
    return [item for item in progress if item.is_alert]
