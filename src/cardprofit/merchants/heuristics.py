"""Built-in merchant category heuristics."""
from typing import TYPE_CHECKING, Optional

from cardprofit.transactions.models import Transaction

if TYPE_CHECKING:
    from .code_cache import MerchantCodeCache

CAFE_MCC = "5462"

# Generic token a benefit lists instead of naming every cafe
CAFE_TOKENS = frozenset({"카페", "cafe"})

CAFE_KEYWORDS = (
    "스타벅스", "투썸플레이스", "이디야", "메가커피", "폴바셋",
    "파리바게뜨", "뚜레쥬르", "던킨도너츠", "카페", "커피",
    "개인카페", "브런치카페", "동네빵집",
)


def is_cafe_token(merchant: str) -> bool:
    return merchant.strip().lower() in CAFE_TOKENS


def is_cafe_transaction(
    transaction: Transaction,
    code_cache: Optional["MerchantCodeCache"] = None
) -> bool:
    """
    Decide whether a transaction took place at a cafe.

    Matches on a fixed set of cafe-brand keywords in the merchant name, on the
    cafe MCC carried by the record, or on the cached classification of the
    merchant when a code cache is supplied.
    """
    merchant_name = transaction.merchant_name or ""
    if any(keyword in merchant_name for keyword in CAFE_KEYWORDS):
        return True

    if transaction.category_code is not None and _same_code(transaction.category_code, CAFE_MCC):
        return True

    if code_cache is not None and merchant_name:
        code = code_cache.industry_code(merchant_name)
        if code is not None and _same_code(code, CAFE_MCC):
            return True

    return False


def _same_code(code: object, expected: str) -> bool:
    # Codes arrive as "5462", 5462 or "5462.0"
    text = str(code).strip()
    if text.endswith(".0"):
        text = text[:-2]
    return text == expected
