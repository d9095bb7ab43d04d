"""Cohort-level fan-out over customer batches."""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .customer import CustomerAnalyzer
from .models import ZERO, CustomerSummary, GroupSummary, percentage
from cardprofit.reporting.trace import write_customer_trace, write_group_summary
from cardprofit.transactions.models import Cohort
from cardprofit.transactions.reader import TransactionReader
from cardprofit.utils.logger import get_logger, reset_scope_context, set_scope_context
from cardprofit.utils.exceptions import TransactionDataError

logger = get_logger()


def build_group_summary(
    name: str,
    customers: Sequence[CustomerSummary],
    skipped_customers: int = 0
) -> GroupSummary:
    """Sum customer absolutes and derive the group ratios from the sums."""
    total_sales = sum((c.total_sales for c in customers), ZERO)
    total_benefit_cost = sum((c.total_benefit_cost for c in customers), ZERO)
    total_transactions = sum(c.total_transactions for c in customers)
    transactions_with_benefit = sum(c.transactions_with_benefit for c in customers)

    return GroupSummary(
        name=name,
        total_sales=total_sales,
        total_benefit_cost=total_benefit_cost,
        total_transactions=total_transactions,
        transactions_with_benefit=transactions_with_benefit,
        our_cost_ratio=percentage(total_benefit_cost, total_sales),
        benefit_application_rate=percentage(transactions_with_benefit, total_transactions),
        processed_customers=len(customers),
        skipped_customers=skipped_customers,
        customers=tuple(customers)
    )


class GroupAnalyzer:
    """Analyzes every customer of a cohort concurrently and rolls them up."""

    def __init__(
        self,
        analyzer: CustomerAnalyzer,
        reader: Optional[TransactionReader] = None,
        max_concurrent_customers: int = 32,
        log_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.analyzer = analyzer
        self.reader = reader or TransactionReader()
        self.max_concurrent_customers = max(max_concurrent_customers, 1)
        self.log_dir = Path(log_dir) if log_dir else None
        self._clock = clock

    async def analyze(self, cohort: Cohort) -> GroupSummary:
        """
        Fan out one task per customer file, then join them all.

        Tasks complete in any order; the summary lists customers in file
        order and its sums do not depend on completion order.
        """
        logger.info(f"Analyzing group {cohort.name}: {len(cohort.customer_files)} customer file(s)")
        semaphore = asyncio.Semaphore(self.max_concurrent_customers)

        results = await asyncio.gather(*(
            self._analyze_customer(cohort.name, path, semaphore)
            for path in cohort.customer_files
        ))

        customers: List[CustomerSummary] = [r for r in results if r is not None]
        skipped = len(results) - len(customers)
        group = build_group_summary(cohort.name, customers, skipped)

        if skipped:
            logger.warning(f"Group {cohort.name}: skipped {skipped} customer(s) with unusable batches")
        if not customers:
            logger.warning(f"Group {cohort.name} has no valid customers")

        logger.info(
            f"Group {cohort.name}: {group.processed_customers} customers, "
            f"cost ratio {group.our_cost_ratio:.2f}%, "
            f"benefit application rate {group.benefit_application_rate:.2f}%"
        )

        if self.log_dir is not None:
            await asyncio.to_thread(write_group_summary, self.log_dir, group, self._clock())

        return group

    async def _analyze_customer(
        self,
        cohort_name: str,
        path: Path,
        semaphore: asyncio.Semaphore
    ) -> Optional[CustomerSummary]:
        token = set_scope_context(f"{cohort_name}/{Path(path).stem}")
        try:
            async with semaphore:
                try:
                    batch = await self.reader.read_async(path)
                except TransactionDataError as e:
                    logger.warning(f"Skipping customer: {e}")
                    return None

                summary, trace = self.analyzer.analyze(batch.customer_id, batch.transactions)

                if self.log_dir is not None:
                    await asyncio.to_thread(write_customer_trace, self.log_dir, cohort_name, trace)

                return summary
        finally:
            reset_scope_context(token)
