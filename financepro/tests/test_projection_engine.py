import unittest
from decimal import Decimal

from financepro.projection_engine import (
    ProjectionPoint,
    ProjectionScenario,
    normalize_scenario_kind,
    project_balance,
)


class ProjectionEngineTests(unittest.TestCase):
    def test_linear_year_with_zero_rate(self) -> None:
        result = project_balance(
            current_balance=Decimal("1000000"),
            monthly_savings=Decimal("100000"),
            annual_rate=Decimal("0"),
            years=1,
            start_year=2026,
        )

        self.assertEqual(
            result.points,
            [
                ProjectionPoint(year=2026, label="today", balance=Decimal("1000000")),
                ProjectionPoint(year=2027, label="2027", balance=Decimal("2200000")),
            ],
        )
        self.assertEqual(result.final_balance, Decimal("2200000"))
        self.assertEqual(result.total_growth, Decimal("1200000"))

    def test_zero_rate_samples_grow_by_a_year_of_savings(self) -> None:
        result = project_balance(
            current_balance=Decimal("5000"),
            monthly_savings=Decimal("250"),
            annual_rate=Decimal("0"),
            years=5,
            start_year=2026,
        )

        balances = [point.balance for point in result.points]
        self.assertEqual(
            balances,
            [Decimal("5000") + Decimal(k * 12 * 250) for k in range(6)],
        )
        self.assertEqual([point.year for point in result.points], list(range(2026, 2032)))

    def test_today_sample_keeps_input_balance(self) -> None:
        result = project_balance(
            current_balance=Decimal("1234.56"),
            monthly_savings=Decimal("10"),
            annual_rate=Decimal("7"),
            years=2,
            start_year=2026,
        )

        self.assertEqual(result.points[0].balance, Decimal("1234.56"))
        self.assertEqual(result.points[0].label, "today")

    def test_monthly_compounding(self) -> None:
        result = project_balance(
            current_balance=Decimal("1200"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("12"),
            years=1,
            start_year=2026,
        )

        self.assertEqual(result.final_balance, Decimal("1352"))
        self.assertEqual(result.total_growth, Decimal("152"))

    def test_negative_savings_declines(self) -> None:
        result = project_balance(
            current_balance=Decimal("1000"),
            monthly_savings=Decimal("-100"),
            annual_rate=Decimal("0"),
            years=2,
            start_year=2026,
        )

        self.assertEqual(
            [point.balance for point in result.points],
            [Decimal("1000"), Decimal("-200"), Decimal("-1400")],
        )
        self.assertEqual(result.total_growth, Decimal("-2400"))

    def test_one_time_scenario_applies_once(self) -> None:
        scenario = ProjectionScenario(
            name="Car purchase",
            amount=Decimal("500"),
            year=2028,
            kind="one-time",
        )

        result = project_balance(
            current_balance=Decimal("0"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("0"),
            years=3,
            scenarios=[scenario],
            start_year=2026,
        )

        self.assertEqual(
            [(point.year, point.balance) for point in result.points],
            [
                (2026, Decimal("0")),
                (2027, Decimal("0")),
                (2028, Decimal("500")),
                (2029, Decimal("500")),
            ],
        )

    def test_recurring_scenario_applies_every_december(self) -> None:
        scenario = ProjectionScenario(
            name="Annual bonus",
            amount=Decimal("100"),
            year=2028,
            kind="recurring",
        )

        result = project_balance(
            current_balance=Decimal("0"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("0"),
            years=4,
            scenarios=[scenario],
            start_year=2026,
        )

        self.assertEqual(
            [point.balance for point in result.points],
            [Decimal("0"), Decimal("0"), Decimal("100"), Decimal("200"), Decimal("300")],
        )

    def test_disabled_scenarios_match_baseline(self) -> None:
        scenarios = [
            ProjectionScenario(
                name="Car purchase",
                amount=Decimal("-15000000"),
                year=2027,
                kind="one-time",
                enabled=False,
            ),
            ProjectionScenario(
                name="Annual bonus",
                amount=Decimal("2000000"),
                year=2027,
                kind="recurring",
                enabled=False,
            ),
        ]

        baseline = project_balance(
            current_balance=Decimal("3000000"),
            monthly_savings=Decimal("250000"),
            annual_rate=Decimal("7"),
            years=10,
            start_year=2026,
        )
        disabled = project_balance(
            current_balance=Decimal("3000000"),
            monthly_savings=Decimal("250000"),
            annual_rate=Decimal("7"),
            years=10,
            scenarios=scenarios,
            start_year=2026,
        )

        self.assertEqual(disabled, baseline)

    def test_injection_month_is_configurable(self) -> None:
        scenario = ProjectionScenario(
            name="Gift",
            amount=Decimal("1000"),
            year=2027,
            kind="one-time",
        )
        june = project_balance(
            current_balance=Decimal("0"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("12"),
            years=1,
            scenarios=[scenario],
            start_year=2026,
        )
        january = project_balance(
            current_balance=Decimal("0"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("12"),
            years=1,
            scenarios=[scenario],
            start_year=2026,
            one_time_month=0,
        )

        self.assertEqual(june.final_balance, Decimal("1062"))
        self.assertEqual(january.final_balance, Decimal("1116"))

    def test_scenario_kind_is_normalized(self) -> None:
        self.assertEqual(normalize_scenario_kind("One Time"), "one-time")
        self.assertEqual(normalize_scenario_kind("ONETIME"), "one-time")
        self.assertEqual(normalize_scenario_kind(" recurring "), "recurring")
        with self.assertRaises(ValueError):
            normalize_scenario_kind("weekly")

    def test_halves_round_toward_positive_infinity(self) -> None:
        for amount, expected in ((Decimal("-2.5"), Decimal("-2")), (Decimal("2.5"), Decimal("3"))):
            with self.subTest(amount=amount):
                result = project_balance(
                    current_balance=Decimal("0"),
                    monthly_savings=Decimal("0"),
                    annual_rate=Decimal("0"),
                    years=1,
                    scenarios=[ProjectionScenario(name="Adjustment", amount=amount, year=2027)],
                    start_year=2026,
                )

                self.assertEqual(result.final_balance, expected)

    def test_high_rate_over_long_horizon(self) -> None:
        result = project_balance(
            current_balance=Decimal("10000000"),
            monthly_savings=Decimal("0"),
            annual_rate=Decimal("50"),
            years=100,
            start_year=2026,
        )

        self.assertEqual(len(result.points), 101)
        self.assertEqual(result.points[-1].year, 2126)
        self.assertGreater(result.final_balance, Decimal("1E+28"))
        self.assertGreaterEqual(result.final_balance.as_tuple().exponent, 0)
        self.assertEqual(result.total_growth, result.final_balance - Decimal("10000000"))

    def test_growth_beyond_decimal_range_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            project_balance(Decimal("1"), Decimal("0"), Decimal("1E+999990"), years=1, start_year=2026)

    def test_rejects_invalid_input(self) -> None:
        with self.assertRaises(ValueError):
            project_balance(Decimal("0"), Decimal("0"), Decimal("0"), years=-1)
        with self.assertRaises(ValueError):
            project_balance(Decimal("NaN"), Decimal("0"), Decimal("0"), years=1)
        with self.assertRaises(ValueError):
            project_balance("abc", Decimal("0"), Decimal("0"), years=1)
        with self.assertRaises(ValueError):
            project_balance(Decimal("0"), Decimal("0"), Decimal("0"), years=1, recurring_month=12)
        with self.assertRaises(ValueError):
            project_balance(
                Decimal("0"),
                Decimal("0"),
                Decimal("0"),
                years=1,
                scenarios=[ProjectionScenario(name="x", amount=Decimal("1"), year=2027, kind="weekly")],
            )


if __name__ == "__main__":
    unittest.main()
