"""Card product and benefit catalog."""
from .models import Benefit, BenefitLimits, BenefitRate, CardCatalog, CardProduct
from .loader import CatalogLoader, parse_catalog, monthly_limit_total

__all__ = [
    "Benefit",
    "BenefitLimits",
    "BenefitRate",
    "CardCatalog",
    "CardProduct",
    "CatalogLoader",
    "parse_catalog",
    "monthly_limit_total"
]
