"""Card product and benefit models."""
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cardprofit.utils.fields import to_decimal

RATE_UNITS = ("percentage", "fixed_amount", "per_transaction", "per_1000_krw")


def _lenient_decimal(value: Any) -> Optional[Decimal]:
    """Malformed amounts become None instead of failing validation."""
    return to_decimal(value)


class BenefitRate(BaseModel):
    """Discount rate of a benefit."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    unit: Optional[str] = None
    value: Optional[Decimal] = None

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Optional[Decimal]:
        return _lenient_decimal(value)

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()


class BenefitLimits(BaseModel):
    """Usage limits of a benefit."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    monthly_limit_amount: Optional[Decimal] = None
    transaction_limit_amount: Optional[Decimal] = Field(
        default=None,
        description="Minimum spend per transaction for the benefit to apply"
    )

    @field_validator("monthly_limit_amount", "transaction_limit_amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Optional[Decimal]:
        return _lenient_decimal(value)

    @property
    def monthly_cap(self) -> Optional[Decimal]:
        """Monthly cap, or None when uncapped (zero means uncapped)."""
        if self.monthly_limit_amount and self.monthly_limit_amount > 0:
            return self.monthly_limit_amount
        return None

    @property
    def minimum_spend(self) -> Optional[Decimal]:
        if self.transaction_limit_amount and self.transaction_limit_amount > 0:
            return self.transaction_limit_amount
        return None


class Benefit(BaseModel):
    """A discount rule attached to a card product ("card service")."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(alias="service_id")
    name: Optional[str] = Field(default=None, alias="service_name")
    rate: BenefitRate = Field(default_factory=BenefitRate)
    limits: BenefitLimits = Field(default_factory=BenefitLimits, alias="service_limit")
    merchants: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Ids are referenced as strings from card_service_mapping
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return str(value).strip()
        return value

    @field_validator("rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else {}

    @field_validator("limits", mode="before")
    @classmethod
    def _coerce_limits(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else {}

    @field_validator("merchants", mode="before")
    @classmethod
    def _coerce_merchants(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @property
    def display_name(self) -> str:
        return self.name or self.id


class CardProduct(BaseModel):
    """A card product and the ordered list of its benefits."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    product_name: str
    annual_fee: Decimal = Decimal("0")
    benefit_ids: List[str] = Field(default_factory=list, alias="card_service_mapping")

    @field_validator("annual_fee", mode="before")
    @classmethod
    def _coerce_annual_fee(cls, value: Any) -> Decimal:
        # Either a plain amount or {"basic": ..., "total": ...}
        if isinstance(value, dict):
            value = value.get("basic") or value.get("total")
        return to_decimal(value) or Decimal("0")

    @field_validator("benefit_ids", mode="before")
    @classmethod
    def _coerce_benefit_ids(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]


class CardCatalog(BaseModel):
    """Parsed card data file: products and the benefit definitions they reference."""
    model_config = ConfigDict(frozen=True)

    products: List[CardProduct]
    benefits: dict[str, Benefit]

    def select_product(self, product_name: Optional[str] = None) -> Optional[CardProduct]:
        """Return the named product, or the first one when no name is given."""
        if not self.products:
            return None
        if product_name is None:
            return self.products[0]
        return next((p for p in self.products if p.product_name == product_name), None)

    def ordered_benefits(self, product: CardProduct) -> List[Benefit]:
        """Benefits of a product in declared match order; unknown ids are dropped."""
        return [self.benefits[bid] for bid in product.benefit_ids if bid in self.benefits]
