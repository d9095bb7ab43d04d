"""Benefit matching."""
from typing import Optional, Sequence

from cardprofit.catalog.models import Benefit
from cardprofit.merchants.code_cache import MerchantCodeCache
from cardprofit.merchants.heuristics import is_cafe_token, is_cafe_transaction
from cardprofit.transactions.models import Transaction


def merchant_matches(
    transaction: Transaction,
    benefit: Benefit,
    code_cache: Optional[MerchantCodeCache] = None
) -> bool:
    """
    True if the transaction merchant satisfies any of the benefit's merchant criteria.

    Names match when either contains the other, which tolerates branch
    suffixes and abbreviations. The generic cafe token matches any
    transaction the cafe heuristic accepts.
    """
    merchant_name = transaction.merchant_name
    if not merchant_name:
        return False

    for benefit_merchant in benefit.merchants:
        if benefit_merchant in merchant_name or merchant_name in benefit_merchant:
            return True
        if is_cafe_token(benefit_merchant) and is_cafe_transaction(transaction, code_cache):
            return True
    return False


def match_benefit(
    transaction: Transaction,
    benefits: Sequence[Benefit],
    code_cache: Optional[MerchantCodeCache] = None
) -> Optional[Benefit]:
    """Return the first benefit, in card order, whose merchants match the transaction."""
    for benefit in benefits:
        if merchant_matches(transaction, benefit, code_cache):
            return benefit
    return None
