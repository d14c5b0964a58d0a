#!/usr/bin/env python3
"""
Size Guide Scraper - Product catalog and shoe size tables from a shop URL
==========================================================================
Finds a site's products and its size conversion table (brand scale, EU, UK,
US, cm) and writes both to output/<site>_size_guides.xlsx.

Usage: python main.py <website-url>
Example: python main.py https://www.kleman-france.com
"""

import logging
import sys
from typing import List, Optional
from urllib.parse import urlparse

import browser
from exporter import export_to_excel, output_path_for
from site_adapters import get_adapter

logging.basicConfig(
    level=logging.INFO,
    format='%(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def normalize_url(raw: str) -> str:
    """'kleman-france.com' -> 'https://www.kleman-france.com'"""
    url = raw.strip()
    if "://" not in url:
        host = url.strip("/")
        if not host.startswith("www."):
            host = f"www.{host}"
        url = f"https://{host}"
    return url.rstrip("/")


def run(url: str) -> int:
    """Scrape one site and write the workbook. Returns the exit code."""
    adapter = get_adapter(url)
    if adapter is None:
        logger.error(f"❌ No adapter handles {url}")
        return 1

    logger.info("=" * 70)
    logger.info(f"Size Guide Scraper for {urlparse(url).hostname} ({adapter.name} adapter)")
    logger.info("=" * 70)

    result = adapter.scrape(url)
    output_path = export_to_excel(result, output_path_for(url))

    logger.info("\n" + "=" * 70)
    logger.info("SCRAPING COMPLETE")
    logger.info(f"Products: {len(result.products)}")
    logger.info(f"Size guides: {len(result.size_guides)}")
    if not result.size_guides:
        logger.info("No size guide found on this site (product sheet written anyway)")
    logger.info(f"Output file: {output_path}")
    logger.info("=" * 70)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the scraper."""
    args = sys.argv[1:] if argv is None else argv
    if not args or not args[0].strip():
        logger.error("Usage: python main.py <website-url>")
        logger.error("Example: python main.py https://www.kleman-france.com")
        return 1

    url = normalize_url(args[0])
    logger.info("\n🔍 Size Guide Scraper")
    logger.info(f"📎 Target: {url}\n")

    try:
        return run(url)
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}")
        return 1
    finally:
        browser.shutdown()


if __name__ == "__main__":
    sys.exit(main())
