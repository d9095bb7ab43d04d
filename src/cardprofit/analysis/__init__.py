"""Customer, group and portfolio aggregation."""
from .models import (
    CustomerSummary,
    GroupSummary,
    PortfolioSummary,
    ThresholdFinding,
    percentage
)
from .thresholds import Thresholds, evaluate_thresholds
from .customer import CustomerAnalyzer
from .group import GroupAnalyzer, build_group_summary
from .portfolio import PortfolioAnalyzer, build_portfolio_summary

__all__ = [
    "CustomerSummary",
    "GroupSummary",
    "PortfolioSummary",
    "ThresholdFinding",
    "percentage",
    "Thresholds",
    "evaluate_thresholds",
    "CustomerAnalyzer",
    "GroupAnalyzer",
    "build_group_summary",
    "PortfolioAnalyzer",
    "build_portfolio_summary"
]
