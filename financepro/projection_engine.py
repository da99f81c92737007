from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_CEILING, Decimal, InvalidOperation
from typing import Iterable, List, Optional

ONE_TIME = "one-time"
RECURRING = "recurring"
SUPPORTED_SCENARIO_KINDS = {ONE_TIME, RECURRING}

# Month indices (0 = January) at which scenario amounts are injected.
ONE_TIME_MONTH = 5
RECURRING_MONTH = 11
SAMPLE_MONTH = 11

MONTHS_PER_YEAR = 12
TODAY_LABEL = "today"


@dataclass(frozen=True)
class ProjectionScenario:
    name: str
    amount: Decimal
    year: int
    kind: str = ONE_TIME
    enabled: bool = True


@dataclass(frozen=True)
class ProjectionPoint:
    year: int
    label: str
    balance: Decimal


@dataclass(frozen=True)
class ProjectionResult:
    points: List[ProjectionPoint]
    final_balance: Decimal
    total_growth: Decimal


def project_balance(
    current_balance: Decimal,
    monthly_savings: Decimal,
    annual_rate: Decimal,
    years: int,
    scenarios: Iterable[ProjectionScenario] = (),
    start_year: Optional[int] = None,
    one_time_month: int = ONE_TIME_MONTH,
    recurring_month: int = RECURRING_MONTH,
) -> ProjectionResult:
    """Simulate the balance month by month and sample it every December.

    Month 0 is today and keeps ``current_balance`` as given. Step ``i`` falls
    in month ``(i - 1) % 12`` of year ``start_year + 1 + (i - 1) // 12``, so
    the first simulated year is the one after today.
    """
    starting_balance = _coerce_number(current_balance, "current_balance")
    savings = _coerce_number(monthly_savings, "monthly_savings")
    rate = _coerce_number(annual_rate, "annual_rate")
    if years < 0:
        raise ValueError("years must be zero or greater.")
    _validate_month(one_time_month, "one_time_month")
    _validate_month(recurring_month, "recurring_month")
    if start_year is None:
        start_year = date.today().year

    active = [_validate_scenario(scenario) for scenario in scenarios if scenario.enabled]
    growth_factor = Decimal("1") + rate / Decimal("100") / Decimal(MONTHS_PER_YEAR)

    points = [ProjectionPoint(year=start_year, label=TODAY_LABEL, balance=starting_balance)]
    try:
        balance = starting_balance
        for step in range(1, years * MONTHS_PER_YEAR + 1):
            month = (step - 1) % MONTHS_PER_YEAR
            year = start_year + 1 + (step - 1) // MONTHS_PER_YEAR

            balance = balance * growth_factor + savings
            for scenario in active:
                if scenario.kind == ONE_TIME:
                    if scenario.year == year and month == one_time_month:
                        balance += scenario.amount
                elif year >= scenario.year and month == recurring_month:
                    balance += scenario.amount

            if month == SAMPLE_MONTH:
                points.append(
                    ProjectionPoint(year=year, label=str(year), balance=_round_balance(balance))
                )
    except ArithmeticError as exc:
        raise ValueError("Projection exceeds the supported numeric range.") from exc

    final_balance = points[-1].balance
    return ProjectionResult(
        points=points,
        final_balance=final_balance,
        total_growth=final_balance - starting_balance,
    )


def normalize_scenario_kind(value: str) -> str:
    normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
    if normalized == "onetime":
        normalized = ONE_TIME
    if normalized not in SUPPORTED_SCENARIO_KINDS:
        raise ValueError("Scenario kind must be 'one-time' or 'recurring'.")
    return normalized


def _validate_scenario(scenario: ProjectionScenario) -> ProjectionScenario:
    return ProjectionScenario(
        name=scenario.name,
        amount=_coerce_number(scenario.amount, "scenario.amount"),
        year=scenario.year,
        kind=normalize_scenario_kind(scenario.kind),
        enabled=scenario.enabled,
    )


def _validate_month(value: int, name: str) -> None:
    if not 0 <= value < MONTHS_PER_YEAR:
        raise ValueError(f"{name} must be between 0 and 11.")


def _coerce_number(value: Decimal | int | float | str, name: str) -> Decimal:
    try:
        coerced = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number.") from exc
    if not coerced.is_finite():
        raise ValueError(f"{name} must be a finite number.")
    return coerced


def _round_balance(value: Decimal) -> Decimal:
    # Halves round toward positive infinity: -2.5 becomes -2, 2.5 becomes 3.
    return value.to_integral_value(rounding=ROUND_HALF_CEILING)
