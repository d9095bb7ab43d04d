"""Portfolio report rendering."""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .trace import format_won

if TYPE_CHECKING:
    from cardprofit.analysis.models import PortfolioSummary
    from cardprofit.analysis.thresholds import Thresholds

RULE = "=" * 60


def format_portfolio_report(
    summary: "PortfolioSummary",
    thresholds: Optional["Thresholds"] = None,
    log_dir: Optional[str] = None,
    generated_at: Optional[datetime] = None
) -> str:
    """
    Render the portfolio summary as the plain-text report shown to analysts.

    Args:
        summary: Portfolio rollup
        thresholds: Reference levels quoted in the guidance notes
        log_dir: Trace directory, mentioned when set
        generated_at: Report time (defaults to now)
    """
    generated_at = generated_at or datetime.now()
    lines = [
        "=== Card profitability analysis ===",
        f"Generated: {generated_at.isoformat()}",
        "",
        "Card",
        f"├─ Product: {summary.product_name}",
        f"├─ Annual fee: {format_won(summary.annual_fee)}",
        f"├─ Benefits defined: {summary.benefit_count}",
        f"└─ Benefits mapped: {summary.mapped_benefit_count}",
        "",
        RULE,
        "Cost ratio and benefit application rate by group",
        RULE,
        "",
    ]

    for group in summary.groups:
        lines.extend([
            f"[ {group.name} ]",
            f"├─ Customers: {group.processed_customers} processed, {group.skipped_customers} skipped",
            f"├─ Total sales: {format_won(group.total_sales)}",
            f"├─ Benefit cost: {format_won(group.total_benefit_cost)}",
            f"├─ Cost ratio: {group.our_cost_ratio:.2f}%",
            f"└─ Benefit application rate: {group.benefit_application_rate:.2f}%",
            "",
        ])

    lines.extend([
        RULE,
        "Average across customer groups",
        f"├─ Average cost ratio: {summary.average_cost_ratio:.2f}%",
        f"└─ Average benefit application rate: {summary.average_benefit_application_rate:.2f}%",
        "",
    ])

    if summary.monthly_limit_total is not None:
        lines.append(f"Sum of monthly caps (capped benefits only): {format_won(summary.monthly_limit_total)}")
        lines.append("")

    if thresholds is not None:
        lines.extend([
            f"Note: the highest group cost ratio should fall between "
            f"{thresholds.avg_cost_rate_max}% and {thresholds.group_cost_rate_max}%.",
            f"Note: the average cost ratio across groups should stay between "
            f"{thresholds.avg_cost_rate_min}% and {thresholds.avg_cost_rate_max}%.",
            "Note: a very low cost ratio can leave customers little reason to use the benefits.",
            f"Caution: readjust the caps when the sum of monthly caps exceeds "
            f"{format_won(thresholds.monthly_limit_max)}.",
        ])

    if summary.findings:
        lines.append("")
        lines.append("Findings")
        for finding in summary.findings:
            lines.append(f"- [{finding.level}] {finding.subject}: {finding.message}")

    if log_dir:
        lines.append(f"Detailed traces: {log_dir}")
    lines.append(RULE)

    return "\n".join(lines)
