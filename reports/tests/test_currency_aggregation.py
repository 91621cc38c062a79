# reports/tests/test_currency_aggregation.py

from decimal import Decimal

from django.test import SimpleTestCase

from reports.services.currency_aggregation import aggregate_amounts, convert_to_primary


class CurrencyAggregationTests(SimpleTestCase):
    def test_convert_to_primary(self):
        self.assertEqual(
            convert_to_primary(amount="10", currency="ngn", rate=None, primary_currency="NGN"),
            Decimal("10"),
        )
        self.assertEqual(
            convert_to_primary(amount="10", currency="USD", rate="1500", primary_currency="NGN"),
            Decimal("15000"),
        )
        self.assertIsNone(convert_to_primary(amount="10", currency="USD", rate="0", primary_currency="NGN"))
        self.assertIsNone(convert_to_primary(amount="10", currency="USD", rate="n/a", primary_currency="NGN"))

    def test_mixed_currencies_with_missing_rate(self):
        result = aggregate_amounts(
            [
                {"amount": "1000.00", "currency": "NGN"},
                {"amount": "10.00", "currency": "USD", "exchange_rate_to_primary": "1500"},
                {"amount": "5.00", "currency": "GBP", "exchange_rate_to_primary": None},
            ],
            "ngn",
        )

        self.assertEqual(result["primary_currency"], "NGN")
        self.assertEqual(result["primary_total"], Decimal("16000.00"))
        self.assertTrue(result["has_multiple_currencies"])
        self.assertTrue(result["has_unconvertible_amounts"])
        self.assertEqual(result["unconvertible_total"], Decimal("5.00"))
        self.assertEqual(result["unconvertible_currencies"], ["GBP"])
        self.assertEqual(
            (result["total_count"], result["converted_count"], result["excluded_count"]),
            (3, 2, 1),
        )
        self.assertFalse(result["by_currency"]["GBP"]["has_all_rates"])
        self.assertEqual(result["by_currency"]["USD"]["converted_total"], Decimal("15000.00"))

    def test_empty_input(self):
        result = aggregate_amounts([], "NGN")
        self.assertEqual(result["primary_total"], Decimal("0.00"))
        self.assertFalse(result["has_multiple_currencies"])
        self.assertEqual(result["total_count"], 0)
