"""Merchant fee table lookup."""
import json
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

from cardprofit.utils.fields import to_decimal
from cardprofit.utils.logger import get_logger
from cardprofit.utils.exceptions import ConfigError

logger = get_logger()

INDUSTRY_AVERAGE_KEY = "전체평균"

# Category name in the fee table -> merchant keywords
CATEGORY_KEYWORDS: Dict[str, tuple] = {
    "카페": ("스타벅스", "투썸", "이디야", "메가커피", "커피", "카페"),
    "편의점": ("CU", "GS25", "세븐일레븐", "이마트24", "미니스톱"),
    "패스트푸드": ("맥도날드", "버거킹", "롯데리아", "KFC", "맘스터치"),
    "대형마트": ("이마트", "홈플러스", "롯데마트", "코스트코"),
    "온라인쇼핑": ("쿠팡", "11번가", "G마켓", "옥션", "네이버쇼핑"),
}


class MerchantFeeTable:
    """Merchant fee rates (fractions, e.g. 0.015) by merchant and category."""

    def __init__(self, data: dict):
        """
        Build the table from parsed fee data.

        Raises:
            ConfigError: Categories, merchant types or benchmarks are not JSON objects
        """
        self.categories: Dict[str, dict] = self._validate_categories(data.get("categories") or {})

        benchmarks = data.get("industryBenchmarks") or {}
        if not isinstance(benchmarks, dict):
            raise ConfigError("Merchant fee table 'industryBenchmarks' must be an object")
        average_rates = benchmarks.get("averageRates") or {}
        if not isinstance(average_rates, dict):
            raise ConfigError("Merchant fee table 'industryBenchmarks.averageRates' must be an object")
        self.industry_average = to_decimal(average_rates.get(INDUSTRY_AVERAGE_KEY)) or Decimal("0")

    @staticmethod
    def _validate_categories(categories) -> Dict[str, dict]:
        if not isinstance(categories, dict):
            raise ConfigError("Merchant fee table 'categories' must be an object")

        for name, category in categories.items():
            if not isinstance(category, dict):
                raise ConfigError(f"Merchant fee category '{name}' must be an object")
            merchant_types = category.get("merchantTypes")
            if merchant_types is not None and not isinstance(merchant_types, dict):
                raise ConfigError(f"Merchant fee category '{name}': 'merchantTypes' must be an object")
        return categories

    @classmethod
    def load(cls, path: str) -> "MerchantFeeTable":
        """Load the fee table JSON; a configured but unreadable table is a config error."""
        try:
            with open(Path(path), "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load merchant fee table {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Merchant fee table must be a JSON object: {path}")
        try:
            return cls(data)
        except ConfigError as e:
            raise ConfigError(f"Invalid merchant fee table {path}: {e}") from e

    def fee_rate(self, merchant_name: str) -> Decimal:
        """
        Look up the fee rate charged to a merchant.

        Lookup order: exact merchant type, partial merchant type match,
        category keyword, then the industry-wide average.
        """
        for category in self.categories.values():
            merchant_types = category.get("merchantTypes") or {}
            if merchant_name in merchant_types:
                rate = to_decimal(merchant_types[merchant_name])
                if rate is not None:
                    return rate

        for category in self.categories.values():
            merchant_types = category.get("merchantTypes") or {}
            for merchant_type, raw_rate in merchant_types.items():
                if not merchant_type:
                    continue
                if merchant_type in merchant_name or merchant_name in merchant_type:
                    rate = to_decimal(raw_rate)
                    if rate is not None:
                        return rate

        for category_name, keywords in CATEGORY_KEYWORDS.items():
            if any(keyword in merchant_name for keyword in keywords):
                base_rate = self._base_rate(category_name)
                return base_rate if base_rate is not None else self.industry_average

        return self.industry_average

    def _base_rate(self, category_name: str) -> Optional[Decimal]:
        category = self.categories.get(category_name) or {}
        rate = to_decimal(category.get("baseRate"))
        return rate if rate else None
