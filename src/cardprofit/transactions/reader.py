"""Per-customer transaction batch reader."""
import asyncio
import json
from pathlib import Path
from typing import Any, List

from .models import AMOUNT_FIELDS, MERCHANT_FIELDS, CustomerBatch, Transaction
from cardprofit.utils.fields import has_any_field
from cardprofit.utils.logger import get_logger
from cardprofit.utils.exceptions import TransactionDataError

logger = get_logger()


class TransactionReader:
    """Loads and validates one customer's transaction batch."""

    def read(self, path: Path) -> CustomerBatch:
        """
        Read a batch file synchronously.

        Args:
            path: JSON array of transaction records

        Returns:
            CustomerBatch in file order

        Raises:
            TransactionDataError: File unreadable, not a JSON array, empty,
                or its first record lacks the amount / merchant fields
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TransactionDataError(f"Failed to read {path.name}: {e}") from e

        validate_records(records, path.name)

        transactions = [
            Transaction.from_record(record) if isinstance(record, dict) else Transaction(None, None)
            for record in records
        ]
        logger.debug(f"Read {len(transactions)} transactions from {path.name}")
        return CustomerBatch(customer_id=path.stem, path=path, transactions=transactions)

    async def read_async(self, path: Path) -> CustomerBatch:
        """Read a batch without blocking the event loop."""
        return await asyncio.to_thread(self.read, path)


def validate_records(records: Any, source: str = "<batch>") -> List[dict]:
    """Shape check on a decoded batch; only the first record is inspected."""
    if not isinstance(records, list):
        raise TransactionDataError(f"{source}: transaction batch must be a JSON array")
    if not records:
        raise TransactionDataError(f"{source}: transaction batch is empty")

    sample = records[0]
    if not has_any_field(sample, AMOUNT_FIELDS) or not has_any_field(sample, MERCHANT_FIELDS):
        raise TransactionDataError(
            f"{source}: first record needs one of {', '.join(AMOUNT_FIELDS)} and merchant_name"
        )
    return records
