"""Card data file loader."""
import json
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from .models import Benefit, CardCatalog, CardProduct
from cardprofit.utils.logger import get_logger
from cardprofit.utils.exceptions import CatalogError

logger = get_logger()


class CatalogLoader:
    """Loads card products and benefits from a card data JSON file."""

    def __init__(self, card_data_dir: str):
        self.card_data_dir = Path(card_data_dir)

    def load(self, card_file_name: str) -> CardCatalog:
        """
        Load and parse a card data file.

        Args:
            card_file_name: File name relative to the card data directory

        Returns:
            CardCatalog with at least one product

        Raises:
            CatalogError: File missing, unreadable, or without products
        """
        card_path = self.card_data_dir / card_file_name
        if not card_path.is_file():
            raise CatalogError(f"Card data file not found: {card_path}")

        try:
            with open(card_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to load card data {card_path}: {e}") from e

        return parse_catalog(data, source=str(card_path))


def parse_catalog(data: object, source: str = "<memory>") -> CardCatalog:
    """Build a CardCatalog from the decoded card data document."""
    if not isinstance(data, dict):
        raise CatalogError(f"Card data must be a JSON object: {source}")

    raw_products = data.get("card_products") or []
    if not isinstance(raw_products, list) or not raw_products:
        raise CatalogError(f"No card products found in {source}")

    products = []
    for index, raw in enumerate(raw_products):
        try:
            products.append(CardProduct.model_validate(raw))
        except ValidationError as e:
            raise CatalogError(f"Card product {index + 1} in {source} is invalid: {e}") from e

    benefits: Dict[str, Benefit] = {}
    raw_benefits = data.get("card_services") or []
    if not isinstance(raw_benefits, list):
        raw_benefits = []

    for index, raw in enumerate(raw_benefits):
        try:
            benefit = Benefit.model_validate(raw)
        except ValidationError as e:
            # A benefit without an id cannot be referenced by any product
            logger.warning(f"Skipping card service {index + 1} in {source}: {e.error_count()} error(s)")
            continue
        if benefit.id in benefits:
            logger.warning(f"Duplicate service_id {benefit.id} in {source}; keeping the first definition")
            continue
        benefits[benefit.id] = benefit

    logger.info(f"Loaded {len(products)} product(s) and {len(benefits)} benefit(s) from {source}")
    return CardCatalog(products=products, benefits=benefits)


def monthly_limit_total(catalog: CardCatalog, product: CardProduct) -> Optional[Decimal]:
    """Sum of the monthly caps of a product's capped benefits (uncapped ones excluded)."""
    caps = [b.limits.monthly_cap for b in catalog.ordered_benefits(product) if b.limits.monthly_cap]
    if not caps:
        return None
    return sum(caps, Decimal("0"))
