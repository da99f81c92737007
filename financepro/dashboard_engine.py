from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

ZERO = Decimal("0")
INCOME = "income"
EXPENSE = "expense"
CATEGORY_KINDS = {INCOME, EXPENSE}


@dataclass(frozen=True)
class DashboardTransaction:
    amount: Decimal
    category_kind: str
    category_name: Optional[str] = None


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    total: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    balance: Decimal = ZERO
    category_breakdown: List[CategoryTotal] = field(default_factory=list)
    transaction_count: int = 0


def summarize_transactions(
    transactions: Iterable[DashboardTransaction],
) -> DashboardSummary:
    income = ZERO
    expenses = ZERO
    count = 0
    totals_by_category: dict[str, Decimal] = {}
    for txn in transactions:
        count += 1
        kind = normalize_kind(txn.category_kind)
        amount = _coerce_amount(txn.amount)
        if kind == INCOME:
            income += amount
        elif kind == EXPENSE:
            expenses += amount
            name = txn.category_name or "Other"
            totals_by_category[name] = totals_by_category.get(name, ZERO) + amount

    breakdown = [
        CategoryTotal(name=name, total=total)
        for name, total in sorted(totals_by_category.items())
    ]
    return DashboardSummary(
        income=income,
        expenses=expenses,
        balance=income - expenses,
        category_breakdown=breakdown,
        transaction_count=count,
    )


def savings_rate(summary: DashboardSummary) -> Decimal:
    """Share of income left after expenses, as a percentage with one decimal."""
    if summary.income == ZERO:
        return ZERO
    rate = (summary.income - summary.expenses) / summary.income * Decimal("100")
    return rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def normalize_kind(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip().lower()


def validate_kind(value: str) -> str:
    normalized = normalize_kind(value)
    if normalized not in CATEGORY_KINDS:
        raise ValueError("Category kind must be 'income' or 'expense'.")
    return normalized


def _coerce_amount(amount: Decimal) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
