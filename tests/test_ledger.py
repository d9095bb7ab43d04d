"""Tests for the monthly benefit ledger."""
import random
import unittest
from decimal import Decimal

from cardprofit.catalog.models import Benefit
from cardprofit.engine.calculator import calculate_discount
from cardprofit.engine.ledger import MonthlyBenefitLedger


class TestMonthlyBenefitLedger(unittest.TestCase):
    """Test MonthlyBenefitLedger."""

    def setUp(self):
        self.ledger = MonthlyBenefitLedger()

    def test_running_total_defaults_to_zero(self):
        self.assertEqual(self.ledger.running_total("2024-01", "svc"), Decimal("0"))

    def test_record_accumulates_per_month_and_benefit(self):
        self.ledger.record("2024-01", "a", Decimal("1000"))
        self.ledger.record("2024-01", "a", Decimal("500"))
        self.ledger.record("2024-01", "b", Decimal("300"))
        self.ledger.record("2024-02", "a", Decimal("200"))

        self.assertEqual(self.ledger.running_total("2024-01", "a"), Decimal("1500"))
        self.assertEqual(self.ledger.running_total("2024-01", "b"), Decimal("300"))
        self.assertEqual(self.ledger.running_total("2024-02", "a"), Decimal("200"))
        self.assertEqual(self.ledger.total(), Decimal("2000"))

    def test_non_positive_discounts_are_not_recorded(self):
        self.ledger.record("2024-01", "a", Decimal("0"))
        self.ledger.record("2024-01", "a", Decimal("-10"))
        self.assertEqual(len(self.ledger), 0)

    def test_months_are_chronological(self):
        self.ledger.record("2024-03", "a", Decimal("1"))
        self.ledger.record("2023-12", "a", Decimal("1"))
        self.ledger.record("2024-01", "a", Decimal("1"))

        self.assertEqual([month for month, _ in self.ledger.months()], ["2023-12", "2024-01", "2024-03"])

    def test_cap_never_exceeded(self):
        """Random sequences never push a month's total above the cap."""
        rng = random.Random(20240105)
        cap = Decimal("10000")
        benefits = [
            Benefit(service_id="pct", rate={"unit": "percentage", "value": 7},
                    service_limit={"monthly_limit_amount": 10000}, merchants=["x"]),
            Benefit(service_id="fixed", rate={"unit": "fixed_amount", "value": 3000},
                    service_limit={"monthly_limit_amount": 10000}, merchants=["x"]),
        ]

        for _ in range(200):
            benefit = rng.choice(benefits)
            month = f"2024-{rng.randint(1, 3):02d}"
            amount = Decimal(rng.randint(1, 500)) * 1000
            result = calculate_discount(amount, benefit, self.ledger.running_total(month, benefit.id))
            self.ledger.record(month, benefit.id, result.discount)

        for _, totals in self.ledger.months():
            for total in totals.values():
                self.assertLessEqual(total, cap)


if __name__ == "__main__":
    unittest.main()
