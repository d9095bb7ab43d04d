"""Discount calculation under monthly caps and minimum spend."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from cardprofit.catalog.models import Benefit
from cardprofit.utils.logger import get_logger

logger = get_logger()

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DiscountResult:
    """Discount granted for one transaction and the effective rate in percent."""
    discount: Decimal = ZERO
    effective_rate: Decimal = ZERO

    @property
    def applied(self) -> bool:
        return self.discount > 0


NO_DISCOUNT = DiscountResult()


def calculate_discount(amount: Decimal, benefit: Benefit, running_total: Decimal = ZERO) -> DiscountResult:
    """
    Compute the discount a benefit grants on one transaction.

    Args:
        amount: Transaction amount (positive)
        benefit: Matched benefit
        running_total: Discount already granted by this benefit this month

    Returns:
        DiscountResult; NO_DISCOUNT when the rate is unusable, the monthly cap
        is already reached, the amount is below the minimum spend, or the
        unit is not a supported one
    """
    try:
        return _calculate(amount, benefit, running_total)
    except (InvalidOperation, ArithmeticError, TypeError) as e:
        logger.warning(f"Discount calculation failed for benefit {benefit.id}: {e}")
        return NO_DISCOUNT


def _calculate(amount: Decimal, benefit: Benefit, running_total: Decimal) -> DiscountResult:
    rate = benefit.rate
    if not rate.value or not rate.unit:
        return NO_DISCOUNT

    monthly_cap = benefit.limits.monthly_cap
    if monthly_cap is not None and running_total >= monthly_cap:
        return NO_DISCOUNT

    minimum_spend = benefit.limits.minimum_spend
    if minimum_spend is not None and amount < minimum_spend:
        return NO_DISCOUNT

    if amount <= 0:
        return NO_DISCOUNT

    if rate.unit == "fixed_amount":
        discount = rate.value
        effective_rate = rate.value / amount * HUNDRED
    elif rate.unit == "percentage":
        discount = amount * rate.value / HUNDRED
        effective_rate = rate.value
    else:
        logger.debug(f"Unsupported rate unit '{rate.unit}' on benefit {benefit.id}")
        return NO_DISCOUNT

    if monthly_cap is not None and running_total + discount > monthly_cap:
        discount = monthly_cap - running_total
        effective_rate = discount / amount * HUNDRED

    if discount <= 0:
        return NO_DISCOUNT

    return DiscountResult(discount=discount, effective_rate=effective_rate)
