import unittest
from decimal import Decimal

from financepro.currency import format_amount, normalize_currency


class CurrencyTests(unittest.TestCase):
    def test_normalizes_currency_codes(self) -> None:
        self.assertEqual(normalize_currency(" clp "), "CLP")

    def test_rejects_invalid_codes(self) -> None:
        for value in ("", "US", "US1", "EURO"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    normalize_currency(value)

    def test_zero_decimal_currency_has_no_minor_units(self) -> None:
        self.assertEqual(format_amount(Decimal("1500000.4"), "clp"), "CLP 1,500,000")

    def test_two_decimal_currency(self) -> None:
        self.assertEqual(format_amount(Decimal("12.5"), "USD"), "USD 12.50")

    def test_without_currency_rounds_to_units(self) -> None:
        self.assertEqual(format_amount("2499.5"), "2,500")


if __name__ == "__main__":
    unittest.main()
