"""
Size Guide Locator - Find a brand's size table
===============================================
Search order, stopping at the first guide found:

1. Conventional size-guide pages under the site root (cheap, static)
2. A small sample of product pages, after clicking a size-guide trigger

Subclasses override read_page() for sites whose table is not a plain <table>:
GridSizeGuideLocator (div grids) and DropdownSizeGuideLocator (tables driven
by a country <select>).
"""

import logging
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup

import browser
from models import SizeGuide, SizeRow
from size_labels import contains_keyword, normalize_text
from table_reader import (
    ValueCleaner,
    grid_items,
    guide_from_rows,
    read_div_grid,
    read_dropdown_table,
    read_row_table,
    strip_cm_suffix,
)

logger = logging.getLogger(__name__)

GUIDE_PAGE_PATHS = [
    "/pages/guide-des-tailles",
    "/pages/size-guide",
    "/size-guide",
    "/guide-des-tailles",
    "/pages/guide-taille",
    "/pages/sizing",
    "/sizing-guide",
]

TRIGGER_SELECTORS = [
    "text=/guide des tailles/i",
    "text=/size guide/i",
    "text=/size chart/i",
    "text=/guide de taille/i",
    "text=/tableau des tailles/i",
    '[class*="size-guide"]',
    '[class*="size_guide"]',
    '[class*="sizeguide"]',
    '[href*="size-guide"]',
    '[href*="guide-taille"]',
]

TABLE_TOKENS = ("eu", "uk", "us", "cm", "pointure", "taille")

GUIDE_PAGE_TIMEOUT_MS = 10000
PRODUCT_PAGE_TIMEOUT_MS = 15000
DEFAULT_SAMPLE_SIZE = 5


def find_size_tables(soup: BeautifulSoup, tokens: Sequence[str] = TABLE_TOKENS) -> list:
    """Tables whose visible text mentions a size system."""
    return [t for t in soup.find_all("table")
            if contains_keyword(t.get_text(" ", strip=True), tokens)]


class SizeGuideLocator:
    """Look for a size table on guide pages, then on sampled product pages."""

    def __init__(self, brand: str,
                 guide_paths: Optional[Sequence[str]] = None,
                 trigger_selectors: Optional[Sequence[str]] = None,
                 engine: str = "chromium",
                 sample_size: int = DEFAULT_SAMPLE_SIZE,
                 table_tokens: Sequence[str] = TABLE_TOKENS,
                 brands: Sequence[str] = (),
                 clean_value: Optional[ValueCleaner] = None,
                 product_wait_until: str = "networkidle",
                 navigation_timeout: int = PRODUCT_PAGE_TIMEOUT_MS,
                 settle_ms: int = 0,
                 force_click: bool = False):
        self.brand = brand
        self.guide_paths = list(GUIDE_PAGE_PATHS if guide_paths is None else guide_paths)
        self.trigger_selectors = list(TRIGGER_SELECTORS if trigger_selectors is None else trigger_selectors)
        self.engine = engine
        self.sample_size = sample_size
        self.table_tokens = tuple(table_tokens)
        self.brands = tuple(brands)
        self.clean_value = clean_value
        self.product_wait_until = product_wait_until
        self.navigation_timeout = navigation_timeout
        self.settle_ms = settle_ms
        self.force_click = force_click

    def find(self, base_url: str, product_urls: Sequence[str]) -> Optional[SizeGuide]:
        """Return the first guide found, or None."""
        base_url = base_url.rstrip("/")

        for path in self.guide_paths:
            guide = self.try_guide_page(f"{base_url}{path}")
            if guide:
                logger.info(f"  ✓ Size guide found at {guide.url}")
                return guide

        for url in list(product_urls)[:self.sample_size]:
            logger.info(f"  Checking: {url}")
            guide = self.try_product_page(url)
            if guide:
                logger.info(f"  ✓ Size guide found on {url}")
                return guide

        return None

    def try_guide_page(self, url: str) -> Optional[SizeGuide]:
        try:
            with browser.open_page(self.engine) as page:
                if browser.goto(page, url, "domcontentloaded", GUIDE_PAGE_TIMEOUT_MS) is None:
                    return None
                return guide_from_rows(self.read_page(page, url), self.brand, url)
        except Exception as e:
            logger.debug(f"Guide page {url} failed: {e}")
            return None

    def try_product_page(self, url: str) -> Optional[SizeGuide]:
        try:
            with browser.open_page(self.engine) as page:
                if browser.goto(page, url, self.product_wait_until, self.navigation_timeout) is None:
                    return None
                if self.settle_ms:
                    page.wait_for_timeout(self.settle_ms)
                browser.dismiss_cookie_banner(page)
                self.reveal(page)
                return guide_from_rows(self.read_page(page, url), self.brand, url)
        except Exception as e:
            logger.warning(f"  ✗ Could not read {url}: {e}")
            return None

    def reveal(self, page) -> Optional[str]:
        """Click the first visible size-guide trigger."""
        clicked = browser.click_first_visible(page, self.trigger_selectors, force=self.force_click)
        if clicked is None:
            logger.debug("  No size-guide trigger visible")
        return clicked

    def read_page(self, page, url: str) -> List[SizeRow]:
        """Read the first size table of the current page."""
        soup = browser.page_soup(page)
        for table in find_size_tables(soup, self.table_tokens):
            rows = read_row_table(table, self.brands, self.clean_value)
            if rows:
                return rows
        return []


class GridSizeGuideLocator(SizeGuideLocator):
    """Locator for div-based grids (header tokens followed by values).

    When heading is set, only the container whose title mentions it is read,
    which separates gender-split guides living on the same page.
    """

    def __init__(self, brand: str, container_selector: str, item_selector: str,
                 title_selector: str = "", heading: str = "",
                 anchor_label: str = "", extra_triggers: Sequence[str] = (),
                 **kwargs):
        super().__init__(brand, **kwargs)
        self.container_selector = container_selector
        self.item_selector = item_selector
        self.title_selector = title_selector
        self.heading = heading
        self.anchor_label = anchor_label
        self.extra_triggers = list(extra_triggers)

    def reveal(self, page) -> Optional[str]:
        clicked = super().reveal(page)
        # Some panels hide the table behind a second accordion
        if self.extra_triggers:
            browser.click_first_visible(page, self.extra_triggers, settle_ms=1000)
        return clicked

    def container_title(self, container) -> str:
        if self.title_selector:
            title = container.select_one(self.title_selector)
            if title is not None:
                return title.get_text(" ", strip=True)
        previous = container.find_previous_sibling()
        return previous.get_text(" ", strip=True) if previous is not None else ""

    def pick_containers(self, soup: BeautifulSoup) -> list:
        containers = soup.select(self.container_selector)
        if not self.heading:
            return containers
        wanted = normalize_text(self.heading)
        return [c for c in containers if wanted in normalize_text(self.container_title(c))]

    def read_page(self, page, url: str) -> List[SizeRow]:
        soup = browser.page_soup(page)
        for container in self.pick_containers(soup):
            rows = read_div_grid(grid_items(container, self.item_selector), self.brands)
            if rows:
                return self.anchor(rows)
        if self.heading:
            return []
        return super().read_page(page, url)

    def anchor(self, rows: List[SizeRow]) -> List[SizeRow]:
        """Prepend the brand scale when the grid has none (brand sizes = EU)."""
        if not self.anchor_label:
            return rows
        eu = next((r for r in rows if r.short_label == "EU"), rows[0])
        brand_row = SizeRow(label=self.anchor_label, short_label=self.anchor_label,
                            values=list(eu.values))
        return [brand_row] + rows


class DropdownSizeGuideLocator(SizeGuideLocator):
    """Locator for tables showing one alternate system chosen in a <select>."""

    def __init__(self, brand: str, table_selector: str, control_selector: str,
                 wanted: Callable[[str], bool], **kwargs):
        kwargs.setdefault("clean_value", strip_cm_suffix)
        super().__init__(brand, **kwargs)
        self.table_selector = table_selector
        self.control_selector = control_selector
        self.wanted = wanted

    def read_page(self, page, url: str) -> List[SizeRow]:
        try:
            page.wait_for_selector(self.table_selector, timeout=8000)
        except Exception:
            logger.debug(f"  No '{self.table_selector}' on {url}")
            return super().read_page(page, url)
        return read_dropdown_table(page, self.table_selector, self.control_selector,
                                   self.wanted, self.brands, self.clean_value)
