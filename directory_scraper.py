"""
Directory Scraper - paginated listing extraction.

This module implements the scrape run, which:
1. Opens a browser session and loads the start page
2. Waits for the listing rows and extracts one record per row
3. Resolves click-tracking website links to their destination
4. Follows the "next page" link until there is none or the page limit is hit
5. Writes the accumulated records to a downloadable file

A page that fails to load, shows no listing rows or raises while being
processed ends the run; whatever was collected before that point is still
returned. Only a browser launch failure reaches the caller.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import yaml

import scraper_config
from browser_session import PageSession, launch_session
from extractors.listing_rows import (
    extract_listing_rows,
    extract_next_page_url,
    get_selector_match_count
)
from listing_models import (
    ListingRecord,
    RunOutcome,
    RunState,
    ScrapePhase,
    ScrapeReport,
    ScrapeResult,
)
from persistence.listing_export import get_writer, WRITERS
from profile_loader import SiteProfile, DEFAULT_PROFILE, load_profile, validate_profile
from redirect_resolver import RedirectResolver

logger = logging.getLogger(__name__)

STOP_NO_NEXT_PAGE = "no next page"
STOP_PAGE_LIMIT = "page limit reached"
STOP_NAVIGATION_FAILED = "navigation failed"
STOP_ROWS_NOT_FOUND = "listing rows not found"
STOP_PAGE_ERROR = "page error"


class DirectoryScraper:
    """
    Pagination controller for one directory site.

    Holds configuration only; every call to scrape() builds its own
    RunState, so one instance can serve concurrent runs.
    """

    def __init__(self, profile: Optional[SiteProfile] = None,
                 headless: Optional[bool] = None,
                 resolver: Optional[RedirectResolver] = None,
                 session_factory: Optional[Callable] = None,
                 navigation_timeout_ms: Optional[int] = None,
                 content_timeout_ms: Optional[int] = None,
                 page_delay: Optional[float] = None,
                 record_delay: Optional[float] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None,
                 verbose_selectors: bool = False):
        """
        Initialize the scraper.

        Args:
            profile: Site profile (None = built-in Clutch profile)
            headless: Run browser in headless mode (None = use config default)
            resolver: Redirect resolver (None = one built from the profile)
            session_factory: Callable taking ``headless`` and returning an
                async context manager that yields a PageSession
            navigation_timeout_ms: Page load timeout
            content_timeout_ms: How long to wait for listing rows
            page_delay: Seconds to pause before loading the next page
            record_delay: Seconds to pause after a probed website resolution
            sleep: Awaitable sleep function (tests pass a no-op)
            verbose_selectors: Log match counts for the row selector
        """
        self.profile = profile or DEFAULT_PROFILE
        self.headless = headless if headless is not None else scraper_config.HEADLESS
        self.resolver = resolver or RedirectResolver(self.profile.redirect)
        self.session_factory = session_factory or launch_session
        self.navigation_timeout_ms = navigation_timeout_ms or scraper_config.NAVIGATION_TIMEOUT_MS
        self.content_timeout_ms = content_timeout_ms or scraper_config.CONTENT_TIMEOUT_MS
        self.page_delay = page_delay if page_delay is not None else scraper_config.PAGE_DELAY
        self.record_delay = record_delay if record_delay is not None else scraper_config.RECORD_DELAY
        self.sleep = sleep or asyncio.sleep
        self.verbose_selectors = verbose_selectors

    async def _navigate(self, state: RunState, session: PageSession) -> bool:
        logger.info(f"Scraping page {state.pages_visited}: {state.current_page_url}")

        if not await session.goto(state.current_page_url, self.navigation_timeout_ms):
            logger.error(f"  Failed to load page {state.pages_visited}")
            state.finish(RunOutcome.ABORTED, STOP_NAVIGATION_FAILED)
            return False

        state.phase = ScrapePhase.WAITING_FOR_CONTENT
        return True

    async def _wait_for_rows(self, state: RunState, session: PageSession) -> bool:
        if not await session.wait_for_selector(self.profile.row_css, self.content_timeout_ms):
            logger.warning(f"  No listing rows found ('{self.profile.row_css}')")
            state.finish(RunOutcome.ABORTED, STOP_ROWS_NOT_FOUND)
            return False

        state.phase = ScrapePhase.EXTRACTING
        return True

    async def _resolve_websites(self, records: List[ListingRecord]) -> None:
        """Resolve each record's website in place, one at a time."""
        for record in records:
            resolution = await self.resolver.resolve_detailed(record.website)
            record.website = resolution.url
            if resolution.probed:
                await self.sleep(self.record_delay)

    async def _process_page(self, state: RunState, session: PageSession) -> Optional[str]:
        """
        Extract, resolve and accumulate the current page.

        Returns:
            The HTML snapshot, for next-page discovery, or None if the
            page content could not be read
        """
        html = await session.content()
        if html is None:
            logger.error(f"  Could not read content of page {state.pages_visited}")
            state.finish(RunOutcome.ABORTED, STOP_PAGE_ERROR)
            return None
        page_url = session.url or state.current_page_url

        if self.verbose_selectors:
            row_count = get_selector_match_count(html, self.profile.row_css)
            logger.info(f"  Selector '{self.profile.row_css}' matched {row_count} elements")

        records = extract_listing_rows(html, page_url, self.profile)
        logger.info(f"  Found {len(records)} companies")

        state.phase = ScrapePhase.RESOLVING_URLS
        await self._resolve_websites(records)

        state.aggregator.add_page(records)
        state.phase = ScrapePhase.CHECKING_NEXT_PAGE
        return html

    async def _advance(self, state: RunState, html: str, base_url: str) -> bool:
        """
        Decide whether to continue to another page.

        Returns:
            True if the state now points at the next page
        """
        if state.limit_reached:
            logger.info(f"Reached page limit: {state.page_limit}")
            state.finish(RunOutcome.DONE, STOP_PAGE_LIMIT)
            return False

        next_url = extract_next_page_url(html, base_url, self.profile)
        if not next_url:
            logger.info("No next page link found")
            state.finish(RunOutcome.DONE, STOP_NO_NEXT_PAGE)
            return False

        await self.sleep(self.page_delay)
        state.begin_page(next_url)
        return True

    async def _run(self, state: RunState, session: PageSession) -> None:
        """
        Main page loop; returns once the state is terminal.

        Any error on a page ends the run as aborted; records from earlier
        pages stay in the aggregator.
        """
        state.begin_page(state.current_page_url)

        while not state.finished:
            try:
                if not await self._navigate(state, session):
                    break
                if not await self._wait_for_rows(state, session):
                    break

                html = await self._process_page(state, session)
                if html is None:
                    break
                await self._advance(state, html, session.url or state.current_page_url)
            except Exception:
                logger.exception(f"Scraping error on page {state.pages_visited}")
                state.finish(RunOutcome.ABORTED, STOP_PAGE_ERROR)
                break

    async def scrape(self, start_url: str, page_limit: Optional[int] = None) -> ScrapeResult:
        """
        Scrape listing pages starting at start_url.

        Args:
            start_url: First result page
            page_limit: Maximum number of pages to visit (None = unbounded)

        Returns:
            ScrapeResult with all records accumulated before the run stopped

        Raises:
            ValueError: If page_limit is below 1
            Exception: Whatever the session factory raises if the browser
                cannot be launched
        """
        if page_limit is not None and page_limit < 1:
            raise ValueError(f"page_limit must be a positive integer, got {page_limit}")

        state = RunState(current_page_url=start_url, page_limit=page_limit)

        logger.info(f"Starting scraper on: {start_url}")
        logger.info(f"Page limit: {page_limit if page_limit is not None else 'unlimited'}")

        async with self.session_factory(self.headless) as session:
            await self._run(state, session)

        result = ScrapeResult.from_state(state)

        logger.info("=" * 60)
        logger.info(f"Scrape {result.outcome.value}: {result.stop_reason}")
        logger.info(f"Pages visited: {result.pages_visited}")
        logger.info(f"Companies collected: {len(result.records)}")
        logger.info("=" * 60)

        return result


async def scrape_to_file(start_url: str, page_limit: Optional[int] = None,
                         output_dir: Optional[str] = None,
                         export_format: str = 'csv',
                         scraper: Optional[DirectoryScraper] = None) -> ScrapeReport:
    """
    Run a scrape and write the records to a new export file.

    Args:
        start_url: First result page
        page_limit: Maximum number of pages (None = scraper_config default)
        output_dir: Directory for the export file (None = config default)
        export_format: 'csv' or 'jsonl'
        scraper: Preconfigured scraper (None = default Clutch scraper)

    Returns:
        ScrapeReport with the run result and the export file path
    """
    writer = get_writer(export_format, str(output_dir or scraper_config.OUTPUT_DIR))
    if page_limit is None:
        page_limit = scraper_config.DEFAULT_PAGE_LIMIT

    scraper = scraper or DirectoryScraper()
    result = await scraper.scrape(start_url, page_limit)

    output_path = writer.write(result.records)
    logger.info(f"{export_format.upper()} saved to: {output_path}")

    return ScrapeReport(result=result, output_path=output_path)


async def start_scrape(start_url: str, page_limit: Optional[int] = None, **kwargs) -> Path:
    """Run a scrape and return the path of the finished export file."""
    report = await scrape_to_file(start_url, page_limit, **kwargs)
    return report.output_path


def main(argv=None):
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description='Scrape paginated directory listings into a CSV file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  clutch-scraper --url https://clutch.co/developers/blockchain
  clutch-scraper --url https://clutch.co/agencies/seo --pages 3
  clutch-scraper --url https://clutch.co/agencies/seo --format jsonl --output exports
  clutch-scraper --url https://clutch.co/agencies/seo --profile profiles/clutch.yaml --visible
        """
    )

    parser.add_argument('--url', required=True, help='First result page to scrape')
    parser.add_argument('--pages', type=int, help='Maximum number of result pages (default: unlimited)')
    parser.add_argument('--output', help='Output directory (default: downloads)')
    parser.add_argument('--format', choices=sorted(WRITERS), default='csv',
                        help='Export format')
    parser.add_argument('--profile', help='Site profile YAML file')

    # Browser options
    parser.add_argument('--headless', action='store_true', help='Run browser in headless mode')
    parser.add_argument('--visible', action='store_true', help='Run browser in visible mode')

    # Debug options
    parser.add_argument('--verbose-selectors', action='store_true',
                        help='Log match counts for the listing row selector')

    args = parser.parse_args(argv)

    scraper_config.configure_logging()

    if args.pages is not None and args.pages < 1:
        logger.error("--pages must be a positive integer")
        sys.exit(1)

    # Determine headless mode
    headless = None
    if args.headless:
        headless = True
    elif args.visible:
        headless = False

    profile = DEFAULT_PROFILE
    if args.profile:
        try:
            logger.info(f"Loading profile: {args.profile}")
            profile = load_profile(args.profile)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Invalid profile: {e}")
            sys.exit(1)

        warnings = validate_profile(profile)
        if warnings:
            logger.warning("Profile validation warnings:")
            for warning in warnings:
                logger.warning(f"  - {warning}")

    scraper = DirectoryScraper(
        profile=profile,
        headless=headless,
        verbose_selectors=args.verbose_selectors
    )

    report = asyncio.run(scrape_to_file(
        args.url,
        page_limit=args.pages,
        output_dir=args.output,
        export_format=args.format,
        scraper=scraper
    ))

    print(report.output_path)


if __name__ == "__main__":
    main()
