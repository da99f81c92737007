"""
Fixed Expense Advisor

Scans a user's recurring fixed expenses with a short list of static rules and
returns human-readable suggestions. Each rule fires independently; when none
fires a single "healthy finances" insight is returned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Pattern

from financepro.currency import format_amount

STREAMING_PATTERN = re.compile(r"netflix|disney|spotify|hbo|amazon|star|apple", re.IGNORECASE)
MAX_STREAMING_SERVICES = 3
HIGH_FIXED_TOTAL = Decimal("500000")
HOUSING_CATEGORY = "Housing"
HIGH_HOUSING_AMOUNT = Decimal("100000")


@dataclass(frozen=True)
class AdvisedExpense:
    description: str
    amount: Decimal
    category_name: Optional[str] = None


@dataclass(frozen=True)
class FixedExpenseInsight:
    kind: str
    title: str
    description: str


def advise_fixed_expenses(
    expenses: Iterable[AdvisedExpense],
    streaming_pattern: Pattern[str] = STREAMING_PATTERN,
    max_streaming_services: int = MAX_STREAMING_SERVICES,
    high_fixed_total: Decimal = HIGH_FIXED_TOTAL,
    housing_category: str = HOUSING_CATEGORY,
    high_housing_amount: Decimal = HIGH_HOUSING_AMOUNT,
    currency: Optional[str] = None,
) -> List[FixedExpenseInsight]:
    """
    Evaluate the advisor rules over the given fixed expenses.

    Rules, in order:
    1. More than ``max_streaming_services`` streaming subscriptions.
    2. Total fixed cost above ``high_fixed_total``.
    3. One suggestion per housing expense above ``high_housing_amount``.

    Args:
        expenses: Fixed expense templates with their category names
        currency: Display currency for amounts quoted in messages

    Returns:
        List of insights, never empty
    """
    expenses = list(expenses)
    insights: List[FixedExpenseInsight] = []

    streaming = [
        expense for expense in expenses if streaming_pattern.search(expense.description or "")
    ]
    if len(streaming) > max_streaming_services:
        insights.append(
            FixedExpenseInsight(
                kind="warning",
                title="Too many streaming services",
                description=(
                    f"You have {len(streaming)} active content subscriptions. "
                    f"Rotating them could save up to {format_amount(streaming[0].amount, currency)} a month."
                ),
            )
        )

    total_fixed = sum((_coerce_amount(expense.amount) for expense in expenses), Decimal("0"))
    if total_fixed > high_fixed_total:
        insights.append(
            FixedExpenseInsight(
                kind="info",
                title="High fixed load",
                description=(
                    "Your recurring expenses take a large share of your income. "
                    "Consider renegotiating internet or insurance plans."
                ),
            )
        )

    for expense in expenses:
        if expense.category_name != housing_category:
            continue
        if _coerce_amount(expense.amount) > high_housing_amount:
            insights.append(
                FixedExpenseInsight(
                    kind="tip",
                    title=f"Optimize {expense.description}",
                    description=(
                        "Look for savings accounts with automatic payments "
                        "to get loyalty discounts."
                    ),
                )
            )

    if not insights:
        insights.append(
            FixedExpenseInsight(
                kind="success",
                title="Healthy finances",
                description=(
                    "No duplicated services or critical excess were found "
                    "in your current fixed expenses."
                ),
            )
        )
    return insights


def _coerce_amount(amount: Decimal) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
