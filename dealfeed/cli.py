"""Command-line search runner.

Runs one search across every enabled source and prints the ranked feed
followed by per-source diagnostics.

Usage:
    dealfeed-search "nintendo switch"
    dealfeed-search iphone --limit 3 --category electronics
    dealfeed-search "" --sort ending_soon --json
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import httpx

from dealfeed.config import settings
from dealfeed.core.logging import configure_logging
from dealfeed.schemas import Category, SearchResponse, SearchResult, SortKey
from dealfeed.scrapers.aggregator import ListingAggregator, one_per_source
from dealfeed.scrapers.register_adapters import register_all_adapters
from dealfeed.scrapers.utils.retry import search_with_retry
from dealfeed.services.normalization_service import ListingNormalizer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dealfeed-search",
        description="Search every enabled marketplace and print a ranked feed.",
    )
    parser.add_argument("term", help="Search term (empty string browses every source)")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.DEFAULT_PER_SOURCE_LIMIT,
        help="Maximum listings per source (default: %(default)s)",
    )
    parser.add_argument(
        "--category",
        choices=[c.value for c in Category],
        help="Only keep listings in this category",
    )
    parser.add_argument(
        "--sort",
        choices=[s.value for s in SortKey],
        default=SortKey.DEAL_POTENTIAL.value,
        help="Sort method (default: %(default)s)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Extra attempts while every source fails (default: %(default)s)",
    )
    parser.add_argument(
        "--one-per-source",
        action="store_true",
        help="Show only the top listing from each source",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def format_result(result: SearchResult) -> str:
    """Render a search result as plain text."""
    lines = []
    title = f"Results for '{result.term}'" if result.term else "Browsing all sources"
    lines.append(f"{title} ({len(result.listings)} listings, sorted by {result.sort.value})")
    lines.append("=" * 70)

    for i, listing in enumerate(result.listings, 1):
        hours, rem = divmod(listing.time_remaining_seconds, 3600)
        lines.append(f"[{i}] {listing.title}")
        lines.append(
            f"    ${listing.current_price} | {listing.bid_count} bids | "
            f"{hours}h {rem // 60}m left | {listing.source.platform}"
        )
        lines.append(
            f"    deal {listing.score.deal_potential} | "
            f"trending {listing.score.trending_score} | "
            f"competition {listing.score.competition_level.value}"
        )
        if listing.source.url:
            lines.append(f"    {listing.source.url}")

    lines.append("")
    lines.append("Sources")
    lines.append("-" * 70)
    for platform, diag in result.diagnostics.items():
        line = f"  {platform:<12} {diag.status.value:<9} {diag.listing_count:>3} listings"
        if diag.dropped_count:
            line += f", {diag.dropped_count} dropped"
        line += f" ({diag.elapsed_ms} ms)"
        if diag.error:
            line += f"  [{diag.error_kind}] {diag.error}"
        lines.append(line)

    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    """Run one search and print it. Returns the process exit code."""
    async with httpx.AsyncClient(
        timeout=max(settings.SCRAPER_TIMEOUT_SECONDS, settings.API_TIMEOUT_SECONDS),
        follow_redirects=True,
    ) as client:
        factory = register_all_adapters()
        aggregator = ListingAggregator(
            factory.create_enabled_adapters(http_client=client),
            ListingNormalizer(default_horizon_seconds=settings.DEFAULT_HORIZON_SECONDS),
        )
        result = await search_with_retry(
            aggregator,
            args.term,
            args.limit,
            category=Category(args.category) if args.category else None,
            sort=SortKey(args.sort),
            attempts=args.retries + 1,
        )

    if args.one_per_source:
        result = one_per_source(result)

    if args.json:
        print(SearchResponse.from_result(result).model_dump_json(indent=2))
    else:
        print(format_result(result))

    return 1 if result.all_failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.limit < 1:
        print("error: --limit must be at least 1", file=sys.stderr)
        return 2

    configure_logging(settings.LOG_LEVEL or "WARNING")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
