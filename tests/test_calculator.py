"""Tests for the discount calculator."""
import unittest
from decimal import Decimal

from cardprofit.catalog.models import Benefit
from cardprofit.engine.calculator import NO_DISCOUNT, calculate_discount


def make_benefit(unit="percentage", value=5, monthly_limit=None, minimum_spend=None):
    return Benefit(
        service_id="svc",
        service_name="Test benefit",
        rate={"unit": unit, "value": value},
        service_limit={
            "monthly_limit_amount": monthly_limit,
            "transaction_limit_amount": minimum_spend
        },
        merchants=["스타벅스"]
    )


class TestCalculateDiscount(unittest.TestCase):
    """Test calculate_discount rules."""

    def test_percentage_with_monthly_cap(self):
        """5% with a 10,000 cap: 100,000 then 150,000 in the same month."""
        benefit = make_benefit("percentage", 5, monthly_limit=10000)

        first = calculate_discount(Decimal("100000"), benefit, Decimal("0"))
        self.assertEqual(first.discount, Decimal("5000"))
        self.assertEqual(first.effective_rate, Decimal("5"))

        second = calculate_discount(Decimal("150000"), benefit, first.discount)
        self.assertEqual(second.discount, Decimal("5000"))
        self.assertEqual(second.effective_rate.quantize(Decimal("0.01")), Decimal("3.33"))

    def test_fixed_amount_with_minimum_spend(self):
        """Fixed 1,000 with a 50,000 minimum spend."""
        benefit = make_benefit("fixed_amount", 1000, minimum_spend=50000)

        self.assertEqual(calculate_discount(Decimal("30000"), benefit), NO_DISCOUNT)

        result = calculate_discount(Decimal("60000"), benefit)
        self.assertEqual(result.discount, Decimal("1000"))
        self.assertEqual(result.effective_rate.quantize(Decimal("0.01")), Decimal("1.67"))

    def test_minimum_spend_is_inclusive(self):
        benefit = make_benefit("fixed_amount", 1000, minimum_spend=50000)
        self.assertEqual(calculate_discount(Decimal("50000"), benefit).discount, Decimal("1000"))

    def test_fixed_amount_independent_of_amount(self):
        benefit = make_benefit("fixed_amount", 1000)
        for amount in ("5000", "75000", "1000000"):
            result = calculate_discount(Decimal(amount), benefit)
            self.assertEqual(result.discount, Decimal("1000"))

    def test_clip_to_remaining_headroom(self):
        benefit = make_benefit("percentage", 5, monthly_limit=10000)

        result = calculate_discount(Decimal("100000"), benefit, Decimal("9000"))

        self.assertEqual(result.discount, Decimal("1000"))
        self.assertEqual(result.effective_rate, Decimal("1"))

    def test_cap_reached_grants_nothing(self):
        benefit = make_benefit("percentage", 5, monthly_limit=10000)
        self.assertEqual(calculate_discount(Decimal("100000"), benefit, Decimal("10000")), NO_DISCOUNT)
        self.assertEqual(calculate_discount(Decimal("100000"), benefit, Decimal("12000")), NO_DISCOUNT)

    def test_zero_cap_means_uncapped(self):
        benefit = make_benefit("percentage", 5, monthly_limit=0)
        result = calculate_discount(Decimal("100000"), benefit, Decimal("999999"))
        self.assertEqual(result.discount, Decimal("5000"))

    def test_malformed_rate_yields_zero(self):
        """Missing or malformed rate data is tolerated as no discount."""
        cases = [
            make_benefit("percentage", None),
            make_benefit("percentage", 0),
            make_benefit(None, 5),
            make_benefit("percentage", "abc"),
            Benefit(service_id="bare", merchants=["x"]),
            Benefit(service_id="weird", rate="5%", service_limit=[1, 2], merchants=["x"]),
        ]
        for benefit in cases:
            with self.subTest(benefit=benefit.id):
                self.assertEqual(calculate_discount(Decimal("100000"), benefit), NO_DISCOUNT)

    def test_malformed_limit_is_ignored(self):
        benefit = Benefit(
            service_id="svc",
            rate={"unit": "percentage", "value": 10},
            service_limit={"monthly_limit_amount": "n/a"},
            merchants=["x"]
        )
        self.assertEqual(calculate_discount(Decimal("10000"), benefit).discount, Decimal("1000"))

    def test_unsupported_units_yield_zero(self):
        for unit in ("per_transaction", "per_1000_krw", "points"):
            with self.subTest(unit=unit):
                benefit = make_benefit(unit, 100)
                self.assertFalse(calculate_discount(Decimal("10000"), benefit).applied)

    def test_string_amounts_in_rate(self):
        benefit = make_benefit("fixed_amount", "1,500")
        self.assertEqual(calculate_discount(Decimal("20000"), benefit).discount, Decimal("1500"))


if __name__ == "__main__":
    unittest.main()
