"""Portfolio-level rollup across cohorts."""
from decimal import Decimal
from typing import List, Optional, Sequence

from .group import GroupAnalyzer
from .models import ZERO, GroupSummary, PortfolioSummary
from .thresholds import Thresholds, evaluate_thresholds
from cardprofit.catalog.models import CardProduct
from cardprofit.transactions.models import Cohort
from cardprofit.utils.logger import get_logger, reset_scope_context, set_scope_context

logger = get_logger()


def mean(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return sum(values, ZERO) / len(values)


def build_portfolio_summary(
    product: CardProduct,
    groups: Sequence[GroupSummary],
    thresholds: Optional[Thresholds] = None,
    monthly_limit_total: Optional[Decimal] = None,
    benefit_count: int = 0
) -> PortfolioSummary:
    """
    Average the group ratios, unweighted by group size, and attach threshold findings.

    Groups without valid customers contribute their zero ratios to the mean.
    """
    thresholds = thresholds or Thresholds()
    average_cost_ratio = mean([g.our_cost_ratio for g in groups])
    average_benefit_rate = mean([g.benefit_application_rate for g in groups])

    findings = evaluate_thresholds(groups, average_cost_ratio, monthly_limit_total, thresholds)

    return PortfolioSummary(
        product_name=product.product_name,
        annual_fee=product.annual_fee,
        benefit_count=benefit_count,
        mapped_benefit_count=len(product.benefit_ids),
        groups=tuple(groups),
        average_cost_ratio=average_cost_ratio,
        average_benefit_application_rate=average_benefit_rate,
        monthly_limit_total=monthly_limit_total,
        findings=tuple(findings)
    )


class PortfolioAnalyzer:
    """Runs the group analysis cohort by cohort."""

    def __init__(self, group_analyzer: GroupAnalyzer, thresholds: Optional[Thresholds] = None):
        self.group_analyzer = group_analyzer
        self.thresholds = thresholds or Thresholds()

    async def analyze(
        self,
        product: CardProduct,
        cohorts: Sequence[Cohort],
        monthly_limit_total: Optional[Decimal] = None,
        benefit_count: int = 0
    ) -> PortfolioSummary:
        logger.info(f"Starting analysis: {len(cohorts)} group(s), card: {product.product_name}")

        groups: List[GroupSummary] = []
        for cohort in cohorts:
            token = set_scope_context(cohort.name)
            try:
                groups.append(await self.group_analyzer.analyze(cohort))
            finally:
                reset_scope_context(token)

        summary = build_portfolio_summary(
            product, groups, self.thresholds, monthly_limit_total, benefit_count
        )
        logger.info(
            f"Analysis complete: {len(groups)} group(s), "
            f"average cost ratio {summary.average_cost_ratio:.2f}%"
        )
        return summary
