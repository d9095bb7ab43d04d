"""Per-customer monthly benefit ledger."""
from decimal import Decimal
from typing import Dict, Iterator, Tuple

ZERO = Decimal("0")


class MonthlyBenefitLedger:
    """
    Running total of discounts granted, per year-month and benefit.

    Owned by a single customer analysis; never shared across customers.
    """

    def __init__(self):
        self._months: Dict[str, Dict[str, Decimal]] = {}

    def running_total(self, year_month: str, benefit_id: str) -> Decimal:
        return self._months.get(year_month, {}).get(benefit_id, ZERO)

    def record(self, year_month: str, benefit_id: str, discount: Decimal) -> Decimal:
        """Add a granted discount; non-positive amounts are not recorded."""
        if discount <= 0:
            return self.running_total(year_month, benefit_id)

        month = self._months.setdefault(year_month, {})
        month[benefit_id] = month.get(benefit_id, ZERO) + discount
        return month[benefit_id]

    def months(self) -> Iterator[Tuple[str, Dict[str, Decimal]]]:
        """Months in chronological order with their benefit totals."""
        for year_month in sorted(self._months):
            yield year_month, dict(self._months[year_month])

    def total(self) -> Decimal:
        return sum((amount for month in self._months.values() for amount in month.values()), ZERO)

    def __len__(self) -> int:
        return len(self._months)
