import unittest
from decimal import Decimal

from financepro.fixed_expense_advisor import AdvisedExpense, advise_fixed_expenses


class FixedExpenseAdvisorTests(unittest.TestCase):
    def test_healthy_when_no_rule_fires(self) -> None:
        insights = advise_fixed_expenses(
            [
                AdvisedExpense(description="Internet", amount=Decimal("25000"), category_name="Technology"),
                AdvisedExpense(description="Netflix", amount=Decimal("9000"), category_name="Entertainment"),
            ]
        )

        self.assertEqual(len(insights), 1)
        self.assertEqual(insights[0].kind, "success")

    def test_empty_list_is_healthy(self) -> None:
        insights = advise_fixed_expenses([])

        self.assertEqual([insight.kind for insight in insights], ["success"])

    def test_flags_more_than_three_streaming_services(self) -> None:
        expenses = [
            AdvisedExpense(description="Netflix Premium", amount=Decimal("12000")),
            AdvisedExpense(description="Disney+", amount=Decimal("8000")),
            AdvisedExpense(description="spotify family", amount=Decimal("6000")),
            AdvisedExpense(description="HBO Max", amount=Decimal("7000")),
        ]

        insights = advise_fixed_expenses(expenses, currency="CLP")

        self.assertEqual([insight.kind for insight in insights], ["warning"])
        self.assertIn("4 active content subscriptions", insights[0].description)
        self.assertIn("CLP 12,000", insights[0].description)

    def test_three_streaming_services_are_fine(self) -> None:
        expenses = [
            AdvisedExpense(description="Netflix", amount=Decimal("12000")),
            AdvisedExpense(description="Apple Music", amount=Decimal("5000")),
            AdvisedExpense(description="Amazon Prime", amount=Decimal("4000")),
        ]

        insights = advise_fixed_expenses(expenses)

        self.assertEqual([insight.kind for insight in insights], ["success"])

    def test_flags_high_total_and_expensive_housing(self) -> None:
        expenses = [
            AdvisedExpense(description="Rent", amount=Decimal("450000"), category_name="Housing"),
            AdvisedExpense(description="Storage unit", amount=Decimal("60000"), category_name="Housing"),
            AdvisedExpense(description="Gym", amount=Decimal("30000"), category_name="Health"),
        ]

        insights = advise_fixed_expenses(expenses)

        self.assertEqual([insight.kind for insight in insights], ["info", "tip"])
        self.assertEqual(insights[1].title, "Optimize Rent")

    def test_thresholds_can_be_overridden(self) -> None:
        expenses = [
            AdvisedExpense(description="Rent", amount=Decimal("900"), category_name="Vivienda"),
        ]

        insights = advise_fixed_expenses(
            expenses,
            high_fixed_total=Decimal("500"),
            housing_category="Vivienda",
            high_housing_amount=Decimal("800"),
        )

        self.assertEqual([insight.kind for insight in insights], ["info", "tip"])


if __name__ == "__main__":
    unittest.main()
