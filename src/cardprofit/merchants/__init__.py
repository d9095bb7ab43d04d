"""Merchant classification, heuristics and fee lookup."""
from .heuristics import CAFE_MCC, is_cafe_token, is_cafe_transaction
from .code_cache import MerchantCodeCache
from .fees import MerchantFeeTable
from .classifier import (
    GeminiMerchantClassifier,
    IndustryBotClassifier,
    MerchantClassifier,
    build_classifier,
    parse_industry_codes,
    refresh_code_cache
)

__all__ = [
    "CAFE_MCC",
    "is_cafe_token",
    "is_cafe_transaction",
    "MerchantCodeCache",
    "MerchantFeeTable",
    "GeminiMerchantClassifier",
    "IndustryBotClassifier",
    "MerchantClassifier",
    "build_classifier",
    "parse_industry_codes",
    "refresh_code_cache"
]
