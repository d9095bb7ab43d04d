"""End-to-end profitability analysis run.

Loads the card data and the optional merchant tables, refreshes the merchant
code cache, then analyzes the cohorts one after another. The code cache is
only written before and after the customer fan-out, never during it.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from cardprofit.analysis import CustomerAnalyzer, GroupAnalyzer, PortfolioAnalyzer, PortfolioSummary, Thresholds
from cardprofit.catalog import CardCatalog, CardProduct, CatalogLoader, monthly_limit_total
from cardprofit.config.manager import ConfigManager, RunConfig
from cardprofit.config.settings import AppSettings
from cardprofit.merchants import (
    MerchantClassifier,
    MerchantCodeCache,
    MerchantFeeTable,
    build_classifier,
    refresh_code_cache
)
from cardprofit.transactions import discover_cohorts
from cardprofit.utils.logger import get_logger
from cardprofit.utils.exceptions import CatalogError, ConfigError

logger = get_logger()

_UNSET = object()


@dataclass
class AnalysisRun:
    """Outcome of one analysis run."""
    summary: PortfolioSummary
    thresholds: Thresholds
    log_dir: Optional[Path] = None
    codes_updated: int = 0


class ProfitabilityOrchestrator:
    """Orchestrates the flow: card data -> code cache -> cohorts -> portfolio."""

    def __init__(
        self,
        config: RunConfig,
        settings: Optional[AppSettings] = None,
        classifier=_UNSET,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Run configuration (directories, service endpoints)
            settings: Application settings; defaults when omitted
            classifier: Merchant classifier; None disables classification,
                omitted builds the configured one
            clock: Processing time source
        """
        self.config = config
        self.settings = settings or AppSettings()
        self._classifier = classifier
        self._clock = clock
        self.thresholds = Thresholds.from_settings(self.settings)

    @property
    def classifier(self) -> Optional[MerchantClassifier]:
        if self._classifier is _UNSET:
            self._classifier = build_classifier(self.settings, self.config)
        return self._classifier

    def validate(self) -> None:
        """Raise ConfigError when the required directories are not usable."""
        is_valid, message = ConfigManager().validate_config(self.config)
        if not is_valid:
            raise ConfigError(message)

    def load_catalog(self, card_file_name: str) -> CardCatalog:
        catalog = CatalogLoader(self.config.card_data_dir).load(card_file_name)
        if not catalog.benefits:
            raise CatalogError(f"No card services found in {card_file_name}")
        return catalog

    def select_product(self, catalog: CardCatalog, product_name: Optional[str] = None) -> CardProduct:
        product = catalog.select_product(product_name)
        if product is None:
            raise CatalogError(f"Card product not found: {product_name}")

        missing = [bid for bid in product.benefit_ids if bid not in catalog.benefits]
        if missing:
            logger.warning(
                f"Product {product.product_name} maps {len(missing)} unknown service id(s): {', '.join(missing)}"
            )
        return product

    def load_code_cache(self) -> MerchantCodeCache:
        return MerchantCodeCache.load(self.config.mcc_code_path, self.settings.code_cache_fuzzy_threshold)

    def load_fee_table(self) -> Optional[MerchantFeeTable]:
        if not self.config.merchant_fee_path:
            return None
        return MerchantFeeTable.load(self.config.merchant_fee_path)

    def refresh_codes(self, catalog: CardCatalog, cache: MerchantCodeCache) -> int:
        """Classify the catalog's unknown merchants and persist the cache."""
        changed = refresh_code_cache(
            catalog.benefits.values(),
            cache,
            self.classifier,
            batch_size=self.settings.classifier_batch_size
        )
        cache.save()
        return changed

    async def run(
        self,
        card_file_name: str,
        product_name: Optional[str] = None,
        max_groups: Optional[int] = None
    ) -> AnalysisRun:
        """
        Run the full analysis for one card product.

        Raises:
            ConfigError: Required directories missing or no cohorts found
            CatalogError: Card data missing, unreadable or without products
        """
        self.validate()

        catalog = self.load_catalog(card_file_name)
        product = self.select_product(catalog, product_name)
        benefits = catalog.ordered_benefits(product)
        fee_table = self.load_fee_table()

        cache = self.load_code_cache()
        codes_updated = await asyncio.to_thread(self.refresh_codes, catalog, cache)

        cohorts = discover_cohorts(
            self.config.mydata_dir,
            max_groups if max_groups is not None else self.settings.max_groups
        )

        log_dir = Path(self.config.log_dir) if self.config.log_dir else None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)

        analyzer = CustomerAnalyzer(benefits, code_cache=cache, fee_table=fee_table, clock=self._clock)
        group_analyzer = GroupAnalyzer(
            analyzer,
            max_concurrent_customers=self.settings.max_concurrent_customers,
            log_dir=log_dir,
            clock=self._clock
        )
        summary = await PortfolioAnalyzer(group_analyzer, self.thresholds).analyze(
            product,
            cohorts,
            monthly_limit_total=monthly_limit_total(catalog, product),
            benefit_count=len(catalog.benefits)
        )

        await asyncio.to_thread(cache.save)

        return AnalysisRun(summary=summary, thresholds=self.thresholds, log_dir=log_dir, codes_updated=codes_updated)

    def run_sync(
        self,
        card_file_name: str,
        product_name: Optional[str] = None,
        max_groups: Optional[int] = None
    ) -> AnalysisRun:
        return asyncio.run(self.run(card_file_name, product_name, max_groups))


def list_cached_codes(cache: MerchantCodeCache) -> List[tuple]:
    """Cache entries as sorted (merchant, industry_code, certainty) rows."""
    rows = []
    for merchant, entry in sorted(cache.as_dict().items()):
        rows.append((merchant, entry.get("industry_code"), entry.get("certainty")))
    return rows
