"""Tests for the customer analyzer."""
import unittest
from datetime import datetime
from decimal import Decimal

from cardprofit.catalog.models import Benefit
from cardprofit.analysis.customer import CustomerAnalyzer
from cardprofit.merchants.fees import MerchantFeeTable
from cardprofit.transactions.models import Transaction

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


def txn(amount, merchant="스타벅스 강남점", date=datetime(2024, 1, 10)):
    return Transaction(
        amount=Decimal(str(amount)) if amount is not None else None,
        merchant_name=merchant,
        date=date
    )


def capped_benefit(service_id="cafe", rate=5, cap=10000, merchants=("스타벅스",)):
    return Benefit(
        service_id=service_id,
        service_name=f"{service_id} discount",
        rate={"unit": "percentage", "value": rate},
        service_limit={"monthly_limit_amount": cap},
        merchants=list(merchants)
    )


class TestCustomerAnalyzer(unittest.TestCase):
    """Test CustomerAnalyzer."""

    def setUp(self):
        self.analyzer = CustomerAnalyzer([capped_benefit()], clock=lambda: FIXED_NOW)

    def test_cap_applies_across_transactions(self):
        summary, _ = self.analyzer.analyze("c1", [txn(100000), txn(150000)])

        self.assertEqual(summary.total_sales, Decimal("250000"))
        self.assertEqual(summary.total_benefit_cost, Decimal("10000"))
        self.assertEqual(summary.total_transactions, 2)
        self.assertEqual(summary.transactions_with_benefit, 2)
        self.assertEqual(summary.our_cost_ratio, Decimal("4"))
        self.assertEqual(summary.benefit_application_rate, Decimal("100"))

    def test_each_month_has_its_own_cap(self):
        summary, _ = self.analyzer.analyze("c1", [
            txn(400000, date=datetime(2024, 1, 3)),
            txn(400000, date=datetime(2024, 2, 3)),
        ])
        self.assertEqual(summary.total_benefit_cost, Decimal("20000"))

    def test_undated_transactions_use_processing_time(self):
        summary, trace = self.analyzer.analyze("c1", [txn(400000, date=None), txn(400000, date=None)])

        self.assertEqual(summary.total_benefit_cost, Decimal("10000"))
        self.assertIn("[2024-03]", trace.text())

    def test_unusable_records_are_skipped(self):
        summary, _ = self.analyzer.analyze("c1", [
            txn(None),
            txn(-5000),
            txn(10000, merchant=None),
            txn(10000, merchant="이마트"),
        ])

        self.assertEqual(summary.total_transactions, 1)
        self.assertEqual(summary.skipped_transactions, 3)
        self.assertEqual(summary.total_sales, Decimal("10000"))
        self.assertEqual(summary.benefit_application_rate, Decimal("0"))

    def test_no_sales_yields_zero_ratios(self):
        summary, _ = self.analyzer.analyze("c1", [])

        self.assertEqual(summary.our_cost_ratio, Decimal("0"))
        self.assertEqual(summary.benefit_application_rate, Decimal("0"))
        self.assertFalse(summary.our_cost_ratio.is_nan())

    def test_first_matching_benefit_is_the_only_attempt(self):
        """A capped-out first match does not fall through to a later benefit."""
        first = capped_benefit("first", rate=5, cap=5000)
        second = capped_benefit("second", rate=10, cap=None)
        analyzer = CustomerAnalyzer([first, second], clock=lambda: FIXED_NOW)

        summary, _ = analyzer.analyze("c1", [txn(100000), txn(100000)])

        self.assertEqual(summary.total_benefit_cost, Decimal("5000"))
        self.assertEqual(summary.transactions_with_benefit, 1)

    def test_order_changes_clipping_not_sales(self):
        forward, _ = self.analyzer.analyze("c1", [txn(100000), txn(300000)])
        backward, _ = self.analyzer.analyze("c1", [txn(300000), txn(100000)])

        self.assertEqual(forward.total_sales, backward.total_sales)
        self.assertEqual(forward.total_benefit_cost, backward.total_benefit_cost)
        self.assertEqual(forward.transactions_with_benefit, 2)
        self.assertEqual(backward.transactions_with_benefit, 1)

    def test_deterministic(self):
        transactions = [txn(12345), txn(67890, date=None), txn(5000, merchant="이디야")]
        first, first_trace = self.analyzer.analyze("c1", transactions)
        second, second_trace = self.analyzer.analyze("c1", transactions)

        self.assertEqual(first, second)
        self.assertEqual(first_trace.text(), second_trace.text())

    def test_fee_revenue_estimate(self):
        fee_table = MerchantFeeTable({
            "categories": {"카페": {"baseRate": 0.02, "merchantTypes": {"스타벅스": 0.015}}},
            "industryBenchmarks": {"averageRates": {"전체평균": 0.021}}
        })
        analyzer = CustomerAnalyzer([capped_benefit()], fee_table=fee_table, clock=lambda: FIXED_NOW)

        summary, _ = analyzer.analyze("c1", [txn(100000, merchant="스타벅스"), txn(100000, merchant="알수없음")])

        self.assertEqual(summary.estimated_fee_revenue, Decimal("3600"))
        self.assertIsNone(self.analyzer.analyze("c1", [txn(1000)])[0].estimated_fee_revenue)

    def test_trace_records_matches_and_ledger(self):
        _, trace = self.analyzer.analyze("c1", [txn(100000), txn(150000)])
        text = trace.text()

        self.assertIn("[match] 스타벅스 강남점 (2024-01) -> benefit: cafe discount", text)
        self.assertIn("=== Monthly discounts ===", text)
        self.assertIn("cafe discount: 10,000 (cap: 10,000)", text)
        self.assertIn("Cost ratio: 4.00%", text)


if __name__ == "__main__":
    unittest.main()
