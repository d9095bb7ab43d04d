"""Tests for settings and run configuration."""
import shutil
import tempfile
import unittest
from pathlib import Path

from cardprofit.config.manager import ConfigManager, RunConfig
from cardprofit.config.settings import AppSettings


class TestAppSettings(unittest.TestCase):
    """Test AppSettings loading."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_from_dict_keeps_defaults_for_missing_keys(self):
        settings = AppSettings.from_dict({
            "analysis": {"max_groups": 5},
            "thresholds": {"cost_rate_warn": 1.5},
            "classifier": {"provider": "gemini"}
        })

        self.assertEqual(settings.max_groups, 5)
        self.assertEqual(settings.cost_rate_warn, 1.5)
        self.assertEqual(settings.classifier_provider, "gemini")
        self.assertEqual(settings.max_concurrent_customers, 32)
        self.assertEqual(settings.avg_cost_rate_max, 0.6)
        self.assertEqual(settings.classifier_batch_size, 30)

    def test_load_yaml(self):
        config_file = self.test_dir / "config.yaml"
        config_file.write_text(
            "app:\n  name: Test\n  version: 2\nlogging:\n  level: DEBUG\ncode_cache:\n  fuzzy_match_threshold: 0\n",
            encoding="utf-8"
        )

        settings = AppSettings.load(config_file)

        self.assertEqual(settings.app_name, "Test")
        self.assertEqual(settings.app_version, "2")
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.code_cache_fuzzy_threshold, 0)

    def test_empty_yaml(self):
        config_file = self.test_dir / "config.yaml"
        config_file.write_text("", encoding="utf-8")
        self.assertEqual(AppSettings.load(config_file), AppSettings())

    def test_explicit_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            AppSettings.load(self.test_dir / "missing.yaml")


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager functionality."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.card_dir = self.test_dir / "cards"
        self.mydata_dir = self.test_dir / "mydata"
        self.card_dir.mkdir()
        self.mydata_dir.mkdir()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_load_config_from_environment(self):
        manager = ConfigManager({
            "CARD_DATA_DIR": f" {self.card_dir} ",
            "MYDATA_DIR": str(self.mydata_dir),
            "MCC_CODE_PATH": "",
            "INDUSTRY_BOT_ENDPOINT": "https://bot.example.com",
            "INDUSTRY_BOT_TIMEOUT": "90",
        })

        config = manager.load_config()

        self.assertEqual(config.card_data_dir, str(self.card_dir))
        self.assertIsNone(config.mcc_code_path)
        self.assertIsNone(config.merchant_fee_path)
        self.assertEqual(config.industry_bot_timeout, 90)

    def test_invalid_timeout_is_ignored(self):
        config = ConfigManager({"INDUSTRY_BOT_TIMEOUT": "soon"}).load_config()
        self.assertIsNone(config.industry_bot_timeout)

    def test_validate_config_valid(self):
        config = RunConfig(card_data_dir=str(self.card_dir), mydata_dir=str(self.mydata_dir))
        is_valid, _ = ConfigManager({}).validate_config(config)
        self.assertTrue(is_valid)

    def test_validate_config_missing_directories(self):
        manager = ConfigManager({})
        cases = [
            RunConfig(mydata_dir=str(self.mydata_dir)),
            RunConfig(card_data_dir=str(self.card_dir)),
            RunConfig(card_data_dir=str(self.test_dir / "nope"), mydata_dir=str(self.mydata_dir)),
            RunConfig(card_data_dir=str(self.card_dir), mydata_dir=str(self.test_dir / "nope")),
        ]
        for config in cases:
            with self.subTest(config=config):
                is_valid, message = manager.validate_config(config)
                self.assertFalse(is_valid)
                self.assertTrue(message)

    def test_validate_config_missing_fee_table(self):
        config = RunConfig(
            card_data_dir=str(self.card_dir),
            mydata_dir=str(self.mydata_dir),
            merchant_fee_path=str(self.test_dir / "fees.json")
        )
        is_valid, message = ConfigManager({}).validate_config(config)
        self.assertFalse(is_valid)
        self.assertIn("fee", message)


if __name__ == "__main__":
    unittest.main()
