"""On-demand scrape: load the registration form, extract its fields, save the catalog."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from udyam.browser.layer import BrowserLayer
from udyam.config.settings import AppSettings
from udyam.scraper.extractor import FieldDescriptor, extract_fields, write_catalog
from udyam.telemetry.errors import ErrorCode, emit_structured_error
from udyam.telemetry.log_setup import configure_logging

logger = logging.getLogger(__name__)


class ScrapeError(RuntimeError):
    """The form page could not be loaded or captured."""


async def scrape_form_fields(
    settings: AppSettings, browser: BrowserLayer | None = None
) -> list[FieldDescriptor]:
    """Run one extraction against the configured form URL and overwrite the catalog."""
    scraper = settings.scraper
    browser = browser or BrowserLayer(settings.browser)

    logger.info("Opening %s", scraper.target_url)
    async with browser:
        result = await browser.navigate(
            scraper.target_url, timeout_ms=scraper.page_load_timeout_s * 1000
        )
        if not result.ok:
            emit_structured_error(
                logger,
                code=ErrorCode.SCRAPE_NAVIGATION_FAILED,
                message=result.detail,
                suppressed=False,
                details={"url": scraper.target_url},
            )
            raise ScrapeError(f"Could not load {scraper.target_url}: {result.detail}")

        snapshot = await browser.capture_dom()
        if snapshot is None:
            raise ScrapeError("Browser page is not available for capture")

    fields = extract_fields(snapshot.html)
    write_catalog(scraper.catalog_path, fields)
    logger.info("Extracted %d fields from %s (dom %s)", len(fields), snapshot.url, snapshot.dom_hash)
    return fields


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m udyam.scraper",
        description="Extract the Udyam registration form fields into a JSON catalog.",
    )
    parser.add_argument("--url", help="Form page to load (default: UDYAM_FORM_URL)")
    parser.add_argument(
        "--output", type=Path, help="Catalog file to write (default: UDYAM_CATALOG_PATH)"
    )
    parser.add_argument(
        "--headed", action="store_true", help="Show the browser window while scraping"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = AppSettings()
    configure_logging(settings.api.log_level)

    if args.url:
        settings.scraper.target_url = args.url
    if args.output:
        settings.scraper.catalog_path = args.output
    if args.headed:
        settings.browser.headless = False

    try:
        fields = asyncio.run(scrape_form_fields(settings))
    except ScrapeError as exc:
        logger.error("%s", exc)
        return 1

    print(f"Saved {len(fields)} fields to {settings.scraper.catalog_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
