#!/usr/bin/env python3
"""
Inspect Page - Show where a product page hides its size guide
==============================================================
Lists size-related clickables, tables, iframes and raw HTML snippets, before
and after clicking the first size-guide trigger. Meant for writing new site
adapters.

Usage: python inspect_page.py <product-url> [chromium|firefox]
"""

import logging
import re
import sys
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

import browser
from size_guide_locator import TRIGGER_SELECTORS
from size_labels import contains_keyword

logging.basicConfig(
    level=logging.INFO,
    format='%(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

SIZE_KEYWORDS = ["taille", "size", "pointure", "guide", "mesure", "cm"]
CLICKABLE_SELECTOR = 'button, a, [role="button"], summary, details'
HTML_PATTERN = re.compile(r".{0,50}(guide.des.tailles|size.guide|sizechart|size_guide|taille).{0,50}",
                          re.IGNORECASE)


def find_size_hints(soup: BeautifulSoup, max_snippets: int = 10) -> Dict[str, List]:
    """Collect what looks size-related in a rendered page."""
    clickables = []
    for el in soup.select(CLICKABLE_SELECTOR):
        text = el.get_text(" ", strip=True)
        if text and contains_keyword(text, SIZE_KEYWORDS):
            clickables.append({
                "tag": el.name,
                "class": " ".join(el.get("class", [])),
                "href": el.get("href"),
                "text": text[:100],
            })

    tables = [t.get_text(" ", strip=True)[:200] for t in soup.find_all("table")]
    iframes = [{"src": f.get("src"), "title": f.get("title")} for f in soup.find_all("iframe")]
    snippets = [m.group(0).strip() for m in HTML_PATTERN.finditer(str(soup))][:max_snippets]

    return {"clickables": clickables, "tables": tables, "iframes": iframes, "snippets": snippets}


def print_hints(title: str, hints: Dict[str, List]) -> None:
    logger.info(f"\n=== {title} ===")
    logger.info(f"Size-related buttons/links: {len(hints['clickables'])}")
    for c in hints["clickables"]:
        logger.info(f"  [{c['tag']}] class=\"{c['class']}\" href=\"{c['href']}\" → \"{c['text']}\"")
    logger.info(f"Tables: {len(hints['tables'])}")
    for text in hints["tables"]:
        logger.info(f"  \"{text}\"")
    logger.info(f"Iframes: {len(hints['iframes'])}")
    for frame in hints["iframes"]:
        logger.info(f"  iframe src=\"{frame['src']}\" title=\"{frame['title']}\"")
    logger.info("HTML matches for size guide patterns:")
    if not hints["snippets"]:
        logger.info("  No matches found")
    for snippet in hints["snippets"]:
        logger.info(f"  ...{snippet}...")


def inspect(url: str, engine: str = "chromium") -> Optional[str]:
    """Print size hints before and after clicking a trigger; return the trigger used."""
    with browser.open_page(engine) as page:
        if browser.goto(page, url, "networkidle", 20000) is None:
            return None
        browser.dismiss_cookie_banner(page)
        print_hints("Before trigger", find_size_hints(browser.page_soup(page)))

        clicked = browser.click_first_visible(page, TRIGGER_SELECTORS)
        logger.info(f"\nTrigger clicked: {clicked or 'none'}")
        if clicked:
            print_hints("After trigger", find_size_hints(browser.page_soup(page)))
        return clicked


def main() -> int:
    if len(sys.argv) < 2:
        logger.error("Usage: python inspect_page.py <product-url> [chromium|firefox]")
        return 1
    engine = sys.argv[2] if len(sys.argv) > 2 else "chromium"
    logger.info(f"\n🔍 Inspecting: {sys.argv[1]}\n")
    try:
        inspect(sys.argv[1], engine)
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}")
        return 1
    finally:
        browser.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
