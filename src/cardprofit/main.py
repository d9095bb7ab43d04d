"""Command-line entry point."""
import sys
import argparse
from typing import Optional

from cardprofit.config.manager import ConfigManager, RunConfig
from cardprofit.config.settings import AppSettings, get_settings
from cardprofit.merchants.code_cache import MerchantCodeCache
from cardprofit.orchestrator.processor import ProfitabilityOrchestrator, list_cached_codes
from cardprofit.reporting.report import format_portfolio_report
from cardprofit.utils.logger import configure_logging, get_logger
from cardprofit.utils.exceptions import CardProfitError

logger = get_logger()


def analyze_command(config: RunConfig, settings: AppSettings, args: argparse.Namespace) -> None:
    """Run the profitability analysis and print the report."""
    orchestrator = ProfitabilityOrchestrator(config, settings)
    run = orchestrator.run_sync(args.card_file, args.product, args.max_groups)
    print(format_portfolio_report(run.summary, run.thresholds, log_dir=str(run.log_dir) if run.log_dir else None))


def refresh_codes_command(config: RunConfig, settings: AppSettings, args: argparse.Namespace) -> None:
    """Classify merchants of a card data file that are missing from the code cache."""
    if not config.card_data_dir:
        raise CardProfitError("Environment variable CARD_DATA_DIR is not set")

    orchestrator = ProfitabilityOrchestrator(config, settings)
    catalog = orchestrator.load_catalog(args.card_file)
    cache = orchestrator.load_code_cache()
    changed = orchestrator.refresh_codes(catalog, cache)
    print(f"✓ Updated {changed} merchant codes ({len(cache)} cached)")


def list_codes_command(config: RunConfig, settings: AppSettings) -> None:
    """Print the cached merchant classifications."""
    cache = MerchantCodeCache.load(config.mcc_code_path, settings.code_cache_fuzzy_threshold)
    rows = list_cached_codes(cache)
    if not rows:
        print("No cached merchant codes found.")
        return

    print(f"\nTotal: {len(rows)} merchants")
    print(f"{'Code':<8} {'Certainty':<10} {'Merchant':<40}")
    print("-" * 60)
    for merchant, code, certainty in rows:
        certainty_text = f"{certainty:.2f}" if isinstance(certainty, (int, float)) else "-"
        print(f"{str(code):<8} {certainty_text:<10} {merchant:<40}")


def clear_codes_command(config: RunConfig, settings: AppSettings) -> None:
    """Empty the merchant code cache file."""
    if not config.mcc_code_path:
        print("MCC_CODE_PATH is not set; nothing to clear.")
        return

    cache = MerchantCodeCache.load(config.mcc_code_path, settings.code_cache_fuzzy_threshold)
    deleted = cache.clear()
    cache.save()
    print(f"✓ Cleared {deleted} cached merchant codes")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Card benefit profitability analyzer")
    parser.add_argument(
        "command",
        nargs="?",
        choices=["analyze", "refresh-codes", "list-codes", "clear-codes"],
        default="analyze",
        help="Command to execute (default: analyze)"
    )
    parser.add_argument(
        "--card-file",
        help="Card data file name under CARD_DATA_DIR (analyze, refresh-codes)"
    )
    parser.add_argument(
        "--product",
        help="Card product name (default: first product in the file)"
    )
    parser.add_argument(
        "--max-groups",
        type=_positive_int,
        help="Maximum number of customer groups to analyze"
    )
    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for the CardProfit CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command in ("analyze", "refresh-codes") and not args.card_file:
        parser.error(f"--card-file is required for {args.command}")

    try:
        settings = get_settings()
        configure_logging(settings.log_level, settings.log_max_file_size_mb, settings.log_backup_count)
        config = ConfigManager().load_config()

        if args.command == "list-codes":
            list_codes_command(config, settings)
        elif args.command == "clear-codes":
            clear_codes_command(config, settings)
        elif args.command == "refresh-codes":
            refresh_codes_command(config, settings, args)
        else:
            analyze_command(config, settings, args)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        sys.exit(130)
    except (CardProfitError, FileNotFoundError) as e:
        logger.critical(f"Analysis failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
