"""Per-customer benefit cost analysis."""
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence, Tuple

from .models import ZERO, CustomerSummary, percentage
from cardprofit.catalog.models import Benefit
from cardprofit.engine.calculator import calculate_discount
from cardprofit.engine.ledger import MonthlyBenefitLedger
from cardprofit.engine.matcher import match_benefit
from cardprofit.merchants.code_cache import MerchantCodeCache
from cardprofit.merchants.fees import MerchantFeeTable
from cardprofit.reporting.trace import AuditTrace
from cardprofit.transactions.models import Transaction
from cardprofit.utils.logger import get_logger

logger = get_logger()


class CustomerAnalyzer:
    """Replays one customer's transactions against a card's ordered benefits."""

    def __init__(
        self,
        benefits: Sequence[Benefit],
        code_cache: Optional[MerchantCodeCache] = None,
        fee_table: Optional[MerchantFeeTable] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the analyzer.

        Args:
            benefits: Benefits in the card's declared match order
            code_cache: Merchant classifications, read only
            fee_table: Merchant fee rates for the informational revenue estimate
            clock: Source of the processing time used for undated transactions
        """
        self.benefits = list(benefits)
        self.benefits_by_id: Dict[str, Benefit] = {b.id: b for b in self.benefits}
        self.code_cache = code_cache
        self.fee_table = fee_table
        self._clock = clock

    def analyze(
        self,
        customer_id: str,
        transactions: Sequence[Transaction]
    ) -> Tuple[CustomerSummary, AuditTrace]:
        """
        Analyze a customer's history in input order.

        Each transaction is tried against the first matching benefit only;
        when that benefit grants nothing (cap reached, minimum spend not met)
        the transaction goes without a discount.

        Returns:
            Tuple of (CustomerSummary, AuditTrace)
        """
        now = self._clock()
        ledger = MonthlyBenefitLedger()
        trace = AuditTrace(customer_id, now)
        trace.start(len(transactions))

        total_sales = ZERO
        total_benefit_cost = ZERO
        total_transactions = 0
        transactions_with_benefit = 0
        skipped = 0
        fee_revenue = ZERO if self.fee_table is not None else None

        for index, transaction in enumerate(transactions):
            if not transaction.is_usable:
                skipped += 1
                trace.record_skip(index, "missing or non-positive amount, or missing merchant name")
                continue

            amount = transaction.amount
            year_month = transaction.year_month(now)
            total_sales += amount
            total_transactions += 1

            if fee_revenue is not None:
                fee_revenue += amount * self.fee_table.fee_rate(transaction.merchant_name)

            benefit = match_benefit(transaction, self.benefits, self.code_cache)
            if benefit is None:
                continue

            trace.record_match(transaction.merchant_name, year_month, benefit)
            result = calculate_discount(amount, benefit, ledger.running_total(year_month, benefit.id))
            if not result.applied:
                trace.record_no_discount()
                continue

            trace.record_discount(amount, result)
            ledger.record(year_month, benefit.id, result.discount)
            total_benefit_cost += result.discount
            transactions_with_benefit += 1

        summary = CustomerSummary(
            customer_id=customer_id,
            total_sales=total_sales,
            total_benefit_cost=total_benefit_cost,
            total_transactions=total_transactions,
            transactions_with_benefit=transactions_with_benefit,
            our_cost_ratio=percentage(total_benefit_cost, total_sales),
            benefit_application_rate=percentage(transactions_with_benefit, total_transactions),
            skipped_transactions=skipped,
            estimated_fee_revenue=fee_revenue
        )

        trace.record_ledger(ledger, self.benefits_by_id)
        trace.record_summary(summary)

        if skipped:
            logger.debug(f"Customer {customer_id}: skipped {skipped} unusable record(s)")
        logger.debug(
            f"Customer {customer_id}: sales {total_sales}, benefit cost {total_benefit_cost}, "
            f"cost ratio {summary.our_cost_ratio:.2f}%"
        )
        return summary, trace
