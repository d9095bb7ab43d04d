"""Advisory sustainability thresholds."""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from .models import GroupSummary, ThresholdFinding
from cardprofit.utils.logger import get_logger

logger = get_logger()

WARNING = "WARNING"
NOTICE = "NOTICE"


@dataclass(frozen=True)
class Thresholds:
    """Reference levels; ratios are percentages, monthly_limit_max is an amount."""
    cost_rate_warn: Decimal = Decimal("1.0")
    avg_cost_rate_min: Decimal = Decimal("0.3")
    avg_cost_rate_max: Decimal = Decimal("0.6")
    group_cost_rate_max: Decimal = Decimal("0.9")
    monthly_limit_max: Decimal = Decimal("70000")

    @classmethod
    def from_settings(cls, settings) -> "Thresholds":
        return cls(
            cost_rate_warn=Decimal(str(settings.cost_rate_warn)),
            avg_cost_rate_min=Decimal(str(settings.avg_cost_rate_min)),
            avg_cost_rate_max=Decimal(str(settings.avg_cost_rate_max)),
            group_cost_rate_max=Decimal(str(settings.group_cost_rate_max)),
            monthly_limit_max=Decimal(str(settings.monthly_limit_max))
        )


def evaluate_thresholds(
    groups: Sequence[GroupSummary],
    average_cost_ratio: Decimal,
    monthly_limit_total: Optional[Decimal],
    thresholds: Thresholds
) -> List[ThresholdFinding]:
    """
    Compare group and portfolio ratios with the reference levels.

    Findings only annotate the report; they never stop a run.
    """
    findings: List[ThresholdFinding] = []

    for group in groups:
        ratio = group.our_cost_ratio
        if ratio > thresholds.cost_rate_warn:
            findings.append(ThresholdFinding(
                WARNING, group.name,
                f"cost ratio {ratio:.2f}% exceeds the warning level of {thresholds.cost_rate_warn}%"
            ))
        elif ratio > thresholds.group_cost_rate_max:
            findings.append(ThresholdFinding(
                NOTICE, group.name,
                f"cost ratio {ratio:.2f}% is above the group reference maximum of "
                f"{thresholds.group_cost_rate_max}%"
            ))

    if groups:
        if average_cost_ratio > thresholds.avg_cost_rate_max:
            findings.append(ThresholdFinding(
                WARNING, "portfolio",
                f"average cost ratio {average_cost_ratio:.2f}% is above the recommended range "
                f"{thresholds.avg_cost_rate_min}% ~ {thresholds.avg_cost_rate_max}%"
            ))
        elif average_cost_ratio < thresholds.avg_cost_rate_min:
            findings.append(ThresholdFinding(
                NOTICE, "portfolio",
                f"average cost ratio {average_cost_ratio:.2f}% is below the recommended range "
                f"{thresholds.avg_cost_rate_min}% ~ {thresholds.avg_cost_rate_max}%; "
                f"benefits this thin may give customers little reason to use the card"
            ))

    if monthly_limit_total is not None and monthly_limit_total > thresholds.monthly_limit_max:
        findings.append(ThresholdFinding(
            WARNING, "limits",
            f"sum of monthly caps {monthly_limit_total:,.0f} exceeds {thresholds.monthly_limit_max:,.0f}; "
            f"consider readjusting the caps"
        ))

    for finding in findings:
        logger.warning(f"[{finding.level}] {finding.subject}: {finding.message}")

    return findings
