from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from aggregation import CategorySummary, MonthlyData
from budgeting import BudgetProgress, budget_alerts

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_HIGH_AVERAGE_THRESHOLD = Decimal("100")


@dataclass(frozen=True)
class SpendingTrend:
    current_month: str
    previous_month: str
    change: Decimal
    percent_change: Optional[Decimal]
    is_increase: bool


@dataclass(frozen=True)
class TopCategory:
    category: str
    amount: Decimal
    count: int
    share_of_total: Decimal


@dataclass(frozen=True)
class Recommendation:
    kind: str
    title: str
    message: str


@dataclass(frozen=True)
class Insights:
    spending_trend: Optional[SpendingTrend]
    top_category: Optional[TopCategory]
    average_transaction: Decimal
    budget_alerts: list[BudgetProgress] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _pct(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def spending_trend(monthly: Sequence[MonthlyData]) -> Optional[SpendingTrend]:
    if len(monthly) < 2:
        return None
    current, previous = monthly[-1], monthly[-2]
    change = current.expenses - previous.expenses
    percent_change = (
        change / previous.expenses * HUNDRED if previous.expenses != ZERO else None
    )
    return SpendingTrend(
        current_month=current.month,
        previous_month=previous.month,
        change=change,
        percent_change=percent_change,
        is_increase=change > ZERO,
    )


def top_category(summary: Sequence[CategorySummary]) -> Optional[TopCategory]:
    if not summary:
        return None
    first = summary[0]
    total = sum((item.amount for item in summary), ZERO)
    share = first.amount / total * HUNDRED if total else ZERO
    return TopCategory(
        category=first.category,
        amount=first.amount,
        count=first.count,
        share_of_total=share,
    )


def average_transaction_value(summary: Sequence[CategorySummary]) -> Decimal:
    count = sum(item.count for item in summary)
    if count == 0:
        return ZERO
    return sum((item.amount for item in summary), ZERO) / count


def recommendations(
    trend: Optional[SpendingTrend],
    top: Optional[TopCategory],
    alerts: Sequence[BudgetProgress],
    budget_count: int,
    average: Decimal,
    threshold: Decimal = DEFAULT_HIGH_AVERAGE_THRESHOLD,
) -> list[Recommendation]:
    tips: list[Recommendation] = []

    if trend is not None and trend.is_increase:
        if trend.percent_change is not None:
            message = f"Your expenses increased by {_pct(trend.percent_change)}% this month."
        else:
            message = (
                f"Your expenses increased by {_money(trend.change)} this month."
            )
        if top is not None:
            message += f" Consider reviewing your {top.category.lower()} spending."
        tips.append(
            Recommendation(
                kind="spending_increase",
                title="Spending Increase Detected",
                message=message,
            )
        )

    if not alerts and budget_count > 0:
        tips.append(
            Recommendation(
                kind="on_track",
                title="Great Budget Management!",
                message=(
                    "You're staying within your budgets across all categories. "
                    "Keep up the good work!"
                ),
            )
        )

    if average > threshold:
        tips.append(
            Recommendation(
                kind="high_average_transaction",
                title="High Average Transaction",
                message=(
                    f"Your average transaction is {_money(average)}. Consider "
                    "tracking smaller purchases to get a complete picture."
                ),
            )
        )
    return tips


def build_insights(
    monthly: Sequence[MonthlyData],
    summary: Sequence[CategorySummary],
    progress: Sequence[BudgetProgress],
    *,
    threshold: Decimal = DEFAULT_HIGH_AVERAGE_THRESHOLD,
) -> Insights:
    trend = spending_trend(monthly)
    top = top_category(summary)
    average = average_transaction_value(summary)
    alerts = budget_alerts(progress)
    return Insights(
        spending_trend=trend,
        top_category=top,
        average_transaction=average,
        budget_alerts=alerts,
        recommendations=recommendations(
            trend, top, alerts, len(progress), average, threshold
        ),
    )
