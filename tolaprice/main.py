"""
CLI entry point for batch inventory pricing.

Reads an inventory CSV with a category column and either the API columns
(weightTola, weightMasha, weightRati, price) or their snake_case forms
(weight_tola, weight_masha, weight_rati, labor_charge). Prices every row at
the current gold and silver rates and writes the priced inventory next to it.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

from tolaprice.models import Metal
from tolaprice.rates.rate_provider import MarketRateProvider, RateProviderError
from tolaprice.services.quote_service import QuoteService
from tolaprice.utils.config_loader import load_config, load_env
from tolaprice.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Tola pricing: price an inventory CSV at live gold/silver rates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    tolaprice --input data/inventory.csv
    tolaprice --input data/inventory.csv --gold-rate 250000 --silver-rate 3000
    tolaprice --input data/inventory.csv --dry-run -v
        """,
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        required=True,
        help="Path to inventory CSV (camelCase or snake_case weight/price columns)",
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Path for priced CSV (default: <input>_priced_<timestamp>.csv)",
    )

    parser.add_argument(
        "--gold-rate",
        type=float,
        help="Manual gold rate in PKR per tola (default: live rate)",
    )

    parser.add_argument(
        "--silver-rate",
        type=float,
        help="Manual silver rate in PKR per tola (default: live rate)",
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run without writing output file",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def default_output_path(input_path: Path) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return input_path.with_name(f"{input_path.stem}_priced_{timestamp}.csv")


def run_cli(args: argparse.Namespace) -> int:
    """
    Run the batch pricing workflow.

    Args:
        args: Parsed command line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for errors).
    """
    config = load_config(args.config)

    logger.info(f"Input file: {args.input}")
    try:
        inventory_df = pd.read_csv(args.input)
    except FileNotFoundError:
        logger.error(f"Input file not found: {args.input}")
        print(f"\n✗ Error: Input file not found: {args.input}")
        return 1
    logger.info(f"Loaded {len(inventory_df)} products")

    provider = MarketRateProvider(config)
    try:
        if args.gold_rate is not None:
            provider.set_manual_rate(Metal.GOLD, args.gold_rate)
        if args.silver_rate is not None:
            provider.set_manual_rate(Metal.SILVER, args.silver_rate)
    except ValueError as e:
        print(f"\n✗ Error: {e}")
        return 1

    service = QuoteService(config, provider)
    try:
        priced_df = service.price_inventory(inventory_df)
    except RateProviderError as e:
        logger.error(f"Rate provider misconfigured: {e}")
        print(f"\n✗ Error: {e}")
        return 1

    gold = provider.get_gold_rate()
    silver = provider.get_silver_rate()

    print("\n" + "=" * 60)
    print("PRICING SUMMARY")
    print("=" * 60)
    for rate in (gold, silver):
        if rate.is_usable:
            print(f"  {rate.metal.value} rate: {rate.price_per_tola:,.0f} PKR/tola ({rate.source})")
        else:
            print(f"  {rate.metal.value} rate: unavailable ({rate.error})")

    print(f"\n  Total products: {len(priced_df)}")
    if len(priced_df):
        unpriced = int((~priced_df["rate_available"].astype(bool)).sum())
        print(f"  Priced at labor only: {unpriced}")
        print(f"  Inventory value: {int(priced_df['dynamic_price'].sum()):,} PKR")

    if args.dry_run:
        print("\n[DRY RUN] - No output file written")
    else:
        output_path = args.output or default_output_path(args.input)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        priced_df.to_csv(output_path, index=False)
        print(f"\n✓ Priced file written: {output_path}")

    print("=" * 60 + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        int: Exit code.
    """
    load_env()
    args = parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else "INFO")

    logger.info("Tola pricing CLI starting...")

    try:
        return run_cli(args)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        print(f"\n✗ Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
