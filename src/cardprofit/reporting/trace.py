"""Plain-text audit traces for customer and cohort analyses."""
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, List, Mapping, Optional

from cardprofit.utils.logger import get_logger

if TYPE_CHECKING:
    from cardprofit.analysis.models import CustomerSummary, GroupSummary
    from cardprofit.catalog.models import Benefit
    from cardprofit.engine.calculator import DiscountResult
    from cardprofit.engine.ledger import MonthlyBenefitLedger

logger = get_logger()

CUSTOMER_TRACE_SUFFIX = "_analysis.log"
GROUP_SUMMARY_FILE = "group_summary.log"


def format_won(amount) -> str:
    """Thousands-separated amount; fractions only when present."""
    if amount is None:
        return "-"
    value = Decimal(amount)
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


class AuditTrace:
    """
    Line-oriented record of one customer analysis.

    The trace is for inspection only; nothing reads it back.
    """

    def __init__(self, customer_id: str, started_at: datetime):
        self.customer_id = customer_id
        self.started_at = started_at
        self.lines: List[str] = []

    def add(self, line: str = "") -> None:
        self.lines.append(line)

    def start(self, transaction_count: int) -> None:
        self.add(f"[customer] {self.customer_id} analysis started")
        self.add(f"Analysis time: {self.started_at.isoformat()}")
        self.add(f"Transactions in batch: {transaction_count}")
        self.add()

    def record_skip(self, index: int, reason: str) -> None:
        self.add(f"  [skipped] record {index + 1}: {reason}")

    def record_match(self, merchant_name: str, year_month: str, benefit: "Benefit") -> None:
        self.add(f"  [match] {merchant_name} ({year_month}) -> benefit: {benefit.display_name}")

    def record_discount(self, amount: Decimal, result: "DiscountResult") -> None:
        self.add(
            f"    - amount: {format_won(amount)}, "
            f"effective rate: {result.effective_rate:.2f}%, "
            f"discount: {format_won(result.discount)}"
        )

    def record_no_discount(self) -> None:
        self.add("    - no discount (cap reached, minimum spend not met or unsupported rate)")

    def record_ledger(self, ledger: "MonthlyBenefitLedger", benefits: Mapping[str, "Benefit"]) -> None:
        self.add()
        self.add("=== Monthly discounts ===")
        for year_month, totals in ledger.months():
            self.add(f"[{year_month}]")
            for benefit_id, total in totals.items():
                benefit = benefits.get(benefit_id)
                name = benefit.display_name if benefit else benefit_id
                cap = benefit.limits.monthly_cap if benefit else None
                cap_info = f" (cap: {format_won(cap)})" if cap is not None else ""
                self.add(f"  - {name}: {format_won(total)}{cap_info}")

    def record_summary(self, summary: "CustomerSummary") -> None:
        self.add()
        self.add("=== Result ===")
        self.add(f"Total sales: {format_won(summary.total_sales)}")
        self.add(f"Total benefit cost: {format_won(summary.total_benefit_cost)}")
        self.add(f"Cost ratio: {summary.our_cost_ratio:.2f}%")
        self.add(f"Transactions with benefit: {summary.transactions_with_benefit}")
        self.add(f"Benefit application rate: {summary.benefit_application_rate:.2f}%")
        if summary.skipped_transactions:
            self.add(f"Skipped records: {summary.skipped_transactions}")
        if summary.estimated_fee_revenue is not None:
            self.add(f"Estimated merchant fee revenue: {format_won(summary.estimated_fee_revenue)}")

    def text(self) -> str:
        return "\n".join(self.lines)


def format_group_summary(group: "GroupSummary", analyzed_at: datetime) -> str:
    """Render the cohort summary log."""
    lines = [
        f"=== {group.name} group summary ===",
        f"Analysis time: {analyzed_at.isoformat()}",
        f"Customers processed: {group.processed_customers}",
        f"Customers skipped: {group.skipped_customers}",
        f"Total sales: {format_won(group.total_sales)}",
        f"Total benefit cost: {format_won(group.total_benefit_cost)}",
        f"Group cost ratio: {group.our_cost_ratio:.2f}%",
        f"Group benefit application rate: {group.benefit_application_rate:.2f}%",
        "",
        "=== Per-customer results ===",
    ]
    for customer in group.customers:
        lines.append(
            f"{customer.customer_id}: sales {format_won(customer.total_sales)}, "
            f"cost ratio {customer.our_cost_ratio:.2f}%, "
            f"benefit application rate {customer.benefit_application_rate:.2f}%"
        )
    return "\n".join(lines)


def _write(path: Path, content: str) -> Optional[Path]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to write trace {path}: {e}")
        return None
    return path


def write_customer_trace(log_dir: Path, cohort_name: str, trace: AuditTrace) -> Optional[Path]:
    """Write <log_dir>/<cohort>/<customer>_analysis.log; returns None when writing failed."""
    path = Path(log_dir) / cohort_name / f"{trace.customer_id}{CUSTOMER_TRACE_SUFFIX}"
    return _write(path, trace.text())


def write_group_summary(log_dir: Path, group: "GroupSummary", analyzed_at: datetime) -> Optional[Path]:
    """Write <log_dir>/<cohort>/group_summary.log; returns None when writing failed."""
    path = Path(log_dir) / group.name / GROUP_SUMMARY_FILE
    return _write(path, format_group_summary(group, analyzed_at))
