"""Benefit matching and discount engine."""
from .ledger import MonthlyBenefitLedger
from .matcher import match_benefit, merchant_matches
from .calculator import NO_DISCOUNT, DiscountResult, calculate_discount

__all__ = [
    "MonthlyBenefitLedger",
    "match_benefit",
    "merchant_matches",
    "NO_DISCOUNT",
    "DiscountResult",
    "calculate_discount"
]
