import time
import logging
import asyncio
import argparse
from typing import List, Optional

from pydantic import ValidationError

from models.base_client import CatalogClient
from models.models import RunException, RunResult, SearchRequest
from reporter import save_result
from scraper import run_search
from scrapers.vivino_http import HttpVivinoClient
from scrapers.vivino_playwright import PlaywrightVivinoClient

logger = logging.getLogger("vivino-scout")

BACKENDS = ("playwright", "http")


# -----------------------------------------------------------------------------
# Logging configuration
# -----------------------------------------------------------------------------
def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vivino wine search scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        python main.py --name "malbec"
        python main.py --name "barolo" --country IT --min-price 20 --max-price 60
        python main.py --name "rioja" --min-ratings 500 --min-average 4 --backend http
        """
    )

    parser.add_argument("--name", required=True, help="Wine name or search term")
    parser.add_argument("--country", default="US", help="Ship To country code (default: US)")
    parser.add_argument("--state", default="", help="Ship To state code (default: CA when country is US)")

    parser.add_argument("--min-price", type=float, help="Minimum price")
    parser.add_argument("--max-price", type=float, help="Maximum price")
    parser.add_argument("--min-ratings", type=float, help="Minimum number of ratings")
    parser.add_argument("--max-ratings", type=float, help="Maximum number of ratings")
    parser.add_argument("--min-average", type=float, help="Minimum average rating")
    parser.add_argument("--max-average", type=float, help="Maximum average rating")

    parser.add_argument("--backend", choices=BACKENDS, default="playwright",
                        help="How pages are fetched (default: playwright)")
    parser.add_argument("--headed", action="store_true", help="Show the browser window (playwright only)")
    parser.add_argument("--output-dir", default=".", help="Directory for the JSON output file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser


def request_from_args(args: argparse.Namespace) -> SearchRequest:
    return SearchRequest(
        query=args.name,
        country_code=args.country,
        state_code=args.state,
        min_price=args.min_price,
        max_price=args.max_price,
        min_ratings=args.min_ratings,
        max_ratings=args.max_ratings,
        min_average=args.min_average,
        max_average=args.max_average,
    )


def build_client(backend: str, headed: bool = False) -> CatalogClient:
    if backend == "http":
        return HttpVivinoClient()
    return PlaywrightVivinoClient(headless=not headed)


# -----------------------------------------------------------------------------
# Run with finalizer
# -----------------------------------------------------------------------------
async def run(client: CatalogClient, request: SearchRequest, output_dir: str = ".") -> Optional[RunResult]:
    """
    Execute one run and always save its result and release the client.

    Saving and closing are scoped separately: a failed save never skips
    closing the client, and neither changes the run's status.
    """
    start = time.perf_counter()
    logger.info(
        "Starting Vivino search for %r (ship to %s/%s) using %s",
        request.query, request.country_code, request.state_code, client.backend_id,
    )

    vinos = []
    result = None
    try:
        result = await run_search(client, request, vinos=vinos)
        logger.info("Run finished with status %s (%d wines)", result.status, len(result.vinos))
    except BaseException as e:
        # interrupted (e.g. Ctrl-C or task cancellation): still save what was collected
        result = RunException(vinos=vinos, message=str(e) or type(e).__name__)
        raise
    finally:
        try:
            save_result(result, output_dir)
        except Exception as e:
            logger.error("Failed to save run result: %s", e)
        finally:
            try:
                await client.close()
            except Exception as e:
                logger.error("Failed to close %s client: %s", client.backend_id, e)

    elapsed = time.perf_counter() - start
    logger.info("Finished in %.2f seconds", elapsed)
    return result


async def main(argv: Optional[List[str]] = None) -> Optional[RunResult]:
    """Main entry point with argument parsing."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        request = request_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    client = build_client(args.backend, args.headed)
    return await run(client, request, args.output_dir)


def cli() -> None:
    asyncio.run(main())


# -----------------------------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    cli()
