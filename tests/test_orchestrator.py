"""End-to-end tests for the profitability orchestrator."""
import json
import shutil
import tempfile
import unittest
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from cardprofit.config.manager import RunConfig
from cardprofit.config.settings import AppSettings
from cardprofit.orchestrator.processor import ProfitabilityOrchestrator, list_cached_codes
from cardprofit.utils.exceptions import CatalogError, ConfigError

CARD_DATA = {
    "card_products": [{
        "product_name": "Cafe Card",
        "annual_fee": {"basic": 12000},
        "card_service_mapping": ["cafe", "store"]
    }],
    "card_services": [
        {
            "service_id": "cafe",
            "service_name": "Cafe 10%",
            "rate": {"unit": "percentage", "value": 10},
            "service_limit": {"monthly_limit_amount": 5000},
            "merchants": ["카페"]
        },
        {
            "service_id": "store",
            "service_name": "Convenience store 500",
            "rate": {"unit": "fixed_amount", "value": 500},
            "service_limit": {"transaction_limit_amount": 10000},
            "merchants": ["GS25"]
        }
    ]
}


class FixedClassifier:
    def __init__(self, codes):
        self.codes = codes
        self.calls = []

    def classify(self, merchants):
        self.calls.append(list(merchants))
        return {m: self.codes[m] for m in merchants if m in self.codes}


class TestProfitabilityOrchestrator(unittest.TestCase):
    """Test ProfitabilityOrchestrator."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.card_dir = self.test_dir / "cards"
        self.mydata_dir = self.test_dir / "mydata"
        self.log_dir = self.test_dir / "logs"
        self.mcc_path = self.test_dir / "mcc_code.json"

        self.card_dir.mkdir()
        (self.card_dir / "card.json").write_text(json.dumps(CARD_DATA, ensure_ascii=False), encoding="utf-8")

        self._write_batch("group_a", "c1", [
            {"amount": 30000, "merchant_name": "블루보틀", "transaction_date": "2024-01-05"},
            {"amount": 40000, "merchant_name": "블루보틀", "transaction_date": "2024-01-06"},
            {"amount": 8000, "merchant_name": "GS25 역삼", "transaction_date": "2024-01-07"},
        ])
        self._write_batch("group_a", "c2", [
            {"sale_amount": 20000, "merchant_name": "GS25 성수", "sale_date": "20240203"},
        ])
        self._write_batch("group_b", "c3", [])

        self.config = RunConfig(
            card_data_dir=str(self.card_dir),
            mydata_dir=str(self.mydata_dir),
            mcc_code_path=str(self.mcc_path),
            log_dir=str(self.log_dir)
        )
        self.mcc_path.write_text(json.dumps({
            "블루보틀": {"industry_code": "5462", "certainty": 0.9}
        }, ensure_ascii=False), encoding="utf-8")
        self.classifier = FixedClassifier({"GS25": {"industry_code": "5499", "certainty": 0.8}})

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write_batch(self, cohort, customer, records):
        directory = self.mydata_dir / cohort
        directory.mkdir(parents=True, exist_ok=True)
        (directory / f"{customer}.json").write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")

    def _orchestrator(self, config=None, settings=None):
        return ProfitabilityOrchestrator(
            config or self.config,
            settings or AppSettings(),
            classifier=self.classifier,
            clock=lambda: datetime(2024, 3, 1)
        )

    def test_full_run(self):
        run = self._orchestrator().run_sync("card.json")
        summary = run.summary

        self.assertEqual(summary.product_name, "Cafe Card")
        self.assertEqual(summary.annual_fee, Decimal("12000"))
        self.assertEqual(summary.benefit_count, 2)
        self.assertEqual(summary.monthly_limit_total, Decimal("5000"))
        self.assertEqual(run.codes_updated, 1)

        group_a, group_b = summary.groups
        # 3,000 + 2,000 (capped at 5,000) for the cafe; 500 for the 20,000 store purchase
        self.assertEqual(group_a.total_sales, Decimal("98000"))
        self.assertEqual(group_a.total_benefit_cost, Decimal("5500"))
        self.assertEqual(group_a.transactions_with_benefit, 3)
        self.assertEqual(group_a.processed_customers, 2)
        self.assertEqual(group_b.processed_customers, 0)
        self.assertEqual(group_b.skipped_customers, 1)
        self.assertEqual(summary.average_cost_ratio, group_a.our_cost_ratio / 2)

        self.assertTrue((self.log_dir / "group_a" / "c1_analysis.log").exists())
        self.assertTrue((self.log_dir / "group_b" / "group_summary.log").exists())

        self.assertEqual(self.classifier.calls, [["카페", "GS25"]])
        saved = json.loads(self.mcc_path.read_text(encoding="utf-8"))
        self.assertEqual(saved["GS25"]["industry_code"], "5499")
        self.assertEqual(saved["블루보틀"]["industry_code"], "5462")

    def test_max_groups(self):
        run = self._orchestrator().run_sync("card.json", max_groups=1)
        self.assertEqual([g.name for g in run.summary.groups], ["group_a"])

        run = self._orchestrator(settings=AppSettings(max_groups=1)).run_sync("card.json")
        self.assertEqual(len(run.summary.groups), 1)

    def test_cached_codes_are_not_reclassified(self):
        self.mcc_path.write_text(json.dumps({
            "블루보틀": {"industry_code": 5462, "certainty": 1.0},
            "카페": {"industry_code": 5462, "certainty": 1.0},
            "GS25": {"industry_code": 5499, "certainty": 1.0}
        }, ensure_ascii=False), encoding="utf-8")

        run = self._orchestrator().run_sync("card.json")

        self.assertEqual(self.classifier.calls, [])
        self.assertEqual(run.codes_updated, 0)

    def test_missing_directories(self):
        config = RunConfig(card_data_dir=str(self.card_dir), mydata_dir=str(self.test_dir / "nope"))
        with self.assertRaises(ConfigError):
            self._orchestrator(config).run_sync("card.json")

    def test_no_cohorts(self):
        empty = self.test_dir / "empty"
        empty.mkdir()
        config = RunConfig(card_data_dir=str(self.card_dir), mydata_dir=str(empty))
        with self.assertRaises(ConfigError):
            self._orchestrator(config).run_sync("card.json")

    def test_catalog_errors(self):
        (self.card_dir / "no_services.json").write_text(json.dumps({
            "card_products": [{"product_name": "Bare"}]
        }), encoding="utf-8")

        orchestrator = self._orchestrator()
        with self.assertRaises(CatalogError):
            orchestrator.run_sync("missing.json")
        with self.assertRaises(CatalogError):
            orchestrator.run_sync("no_services.json")
        with self.assertRaises(CatalogError):
            orchestrator.run_sync("card.json", product_name="Unknown")

    def test_list_cached_codes(self):
        orchestrator = self._orchestrator()
        catalog = orchestrator.load_catalog("card.json")
        cache = orchestrator.load_code_cache()
        orchestrator.refresh_codes(catalog, cache)

        self.assertEqual(list_cached_codes(cache), [("GS25", "5499", 0.8), ("블루보틀", "5462", 0.9)])


if __name__ == "__main__":
    unittest.main()
