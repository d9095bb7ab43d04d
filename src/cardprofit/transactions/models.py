"""Data models for transaction batches."""
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from cardprofit.utils.fields import first_present, to_decimal

AMOUNT_FIELDS = ("amount", "sale_amount")
MERCHANT_FIELDS = ("merchant_name",)
DATE_FIELDS = ("transaction_date", "date", "sale_date")
CATEGORY_CODE_FIELDS = ("sale_category_code", "category_code", "mcc")

_DATE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y%m%d%H%M%S",
    "%Y%m%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m",
    "%Y%m",
]


def parse_date(value: Any) -> Optional[datetime]:
    """Parse the date representations seen in transaction batches."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    # "2024. 1. 5." style
    parts = [p for p in re.split(r"[^0-9]+", text) if p]
    if len(parts) >= 3 and len(parts[0]) == 4:
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None

    return None


@dataclass(frozen=True)
class Transaction:
    """One card transaction from a customer batch."""
    amount: Optional[Decimal]
    merchant_name: Optional[str]
    date: Optional[datetime] = None
    category_code: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Transaction":
        """Build a transaction from a raw JSON record using the accepted field names."""
        merchant = first_present(record, MERCHANT_FIELDS)
        category_code = first_present(record, CATEGORY_CODE_FIELDS)

        date = None
        for key in DATE_FIELDS:
            date = parse_date(first_present(record, (key,)))
            if date is not None:
                break

        return cls(
            amount=to_decimal(first_present(record, AMOUNT_FIELDS)),
            merchant_name=str(merchant).strip() if merchant is not None else None,
            date=date,
            category_code=str(category_code).strip() if category_code is not None else None,
            raw=dict(record) if isinstance(record, Mapping) else {}
        )

    @property
    def is_usable(self) -> bool:
        """A positive amount and a merchant name are both required."""
        return bool(self.merchant_name) and self.amount is not None and self.amount > 0

    def year_month(self, now: datetime) -> str:
        """YYYY-MM of the transaction, or of `now` when it carries no usable date."""
        moment = self.date or now
        return f"{moment.year:04d}-{moment.month:02d}"


@dataclass
class CustomerBatch:
    """A customer's transaction history as read from disk."""
    customer_id: str
    path: Path
    transactions: List[Transaction]


@dataclass
class Cohort:
    """A group of customers analyzed together as one sample unit."""
    name: str
    path: Path
    customer_files: List[Path] = field(default_factory=list)
