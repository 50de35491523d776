"""Main entry point for Showroom."""

import argparse
import sys
from typing import Optional

from loguru import logger

from .context import build_context
from .financing.amortization import FinancingTerms, quote_term_options
from .utils.config import get_config
from .utils.formatting import format_price
from .utils.logger import setup_logging


def run_api():
    """Run the FastAPI server."""
    import uvicorn

    from .api.main import create_app

    config = get_config()
    setup_logging()

    logger.info("=" * 80)
    logger.info("Showroom API - Starting")
    logger.info("=" * 80)

    uvicorn.run(
        create_app(build_context(config)),
        host=config.api.host,
        port=config.api.port,
        log_level="info",
    )


def run_seed(force: bool = False):
    """Load the sample catalog."""
    from .seed import load_seed, seed_catalog

    setup_logging()
    ctx = build_context()
    seed_catalog(ctx, load_seed(), force=force)


def run_quote(price: int, down_payment: Optional[int] = None):
    """Print financing options for a price."""
    config = get_config()
    setup_logging(log_level="WARNING", log_file="")

    terms = FinancingTerms.from_config(config.financing)
    suffix = config.storefront.currency_suffix

    print(f"Price: {format_price(price, suffix)} at {terms.annual_rate_percent}% APR")
    for quote in quote_term_options(price, down_payment, terms):
        print(
            f"  {quote.term_months:>3} months | down {format_price(quote.down_payment, suffix)}"
            f" | monthly {format_price(quote.monthly_payment, suffix)}"
            f" | interest {format_price(quote.total_interest, suffix)}"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Showroom")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # API command
    subparsers.add_parser("api", help="Run the API server")

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Load the sample catalog")
    seed_parser.add_argument("--force", action="store_true", help="Insert even if data exists")

    # Quote command
    quote_parser = subparsers.add_parser("quote", help="Show financing options for a price")
    quote_parser.add_argument("price", type=int, help="Vehicle price")
    quote_parser.add_argument("--down-payment", type=int, default=None, help="Down payment")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "api":
            run_api()
        elif args.command == "seed":
            run_seed(args.force)
        elif args.command == "quote":
            run_quote(args.price, args.down_payment)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
