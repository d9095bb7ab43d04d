"""Audit traces and the portfolio report."""
from .trace import (
    AuditTrace,
    format_group_summary,
    format_won,
    write_customer_trace,
    write_group_summary
)
from .report import format_portfolio_report

__all__ = [
    "AuditTrace",
    "format_group_summary",
    "format_won",
    "write_customer_trace",
    "write_group_summary",
    "format_portfolio_report"
]
