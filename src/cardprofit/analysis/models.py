"""Summary models produced by the aggregators."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percentage(numerator, denominator) -> Decimal:
    """numerator / denominator x 100, or 0 when the denominator is zero."""
    if not denominator:
        return ZERO
    return Decimal(numerator) / Decimal(denominator) * HUNDRED


@dataclass(frozen=True)
class CustomerSummary:
    """Benefit cost of one customer's history under a card product."""
    customer_id: str
    total_sales: Decimal = ZERO
    total_benefit_cost: Decimal = ZERO
    total_transactions: int = 0
    transactions_with_benefit: int = 0
    our_cost_ratio: Decimal = ZERO
    benefit_application_rate: Decimal = ZERO
    skipped_transactions: int = 0
    estimated_fee_revenue: Optional[Decimal] = None


@dataclass(frozen=True)
class GroupSummary:
    """Cohort rollup; ratios are computed from summed absolutes."""
    name: str
    total_sales: Decimal = ZERO
    total_benefit_cost: Decimal = ZERO
    total_transactions: int = 0
    transactions_with_benefit: int = 0
    our_cost_ratio: Decimal = ZERO
    benefit_application_rate: Decimal = ZERO
    processed_customers: int = 0
    skipped_customers: int = 0
    customers: Tuple[CustomerSummary, ...] = ()


@dataclass(frozen=True)
class ThresholdFinding:
    """Advisory note raised when a ratio falls outside its reference range."""
    level: str
    subject: str
    message: str


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Portfolio rollup for one card product.

    average_cost_ratio and average_benefit_application_rate are the plain
    mean of the group ratios, unweighted by group size.
    """
    product_name: str
    annual_fee: Decimal = ZERO
    benefit_count: int = 0
    mapped_benefit_count: int = 0
    groups: Tuple[GroupSummary, ...] = ()
    average_cost_ratio: Decimal = ZERO
    average_benefit_application_rate: Decimal = ZERO
    monthly_limit_total: Optional[Decimal] = None
    findings: Tuple[ThresholdFinding, ...] = field(default=())
