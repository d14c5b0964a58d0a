"""
Site Adapters - Per-site scraping strategies
=============================================
Each adapter says which URLs it handles and how to list products and find
size guides for that site. ADAPTERS is checked in order and the first match
wins; GenericAdapter is last and matches everything.

To add a new site:
1. Subclass SiteAdapter with its brand, hosts and browser engine
2. Override discover_products() and/or find_size_guides()
3. Insert it in ADAPTERS before GenericAdapter
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from urllib.parse import urlparse

import browser
from catalog import (
    clean_product_name,
    detect_type,
    discover_products,
    feed_products,
    is_blocked_name,
    resolve_link,
)
from models import (
    GENDER_MEN,
    GENDER_WOMEN,
    MATCH_FALLBACK,
    MATCH_GENDER,
    MATCH_SINGLE_GUIDE,
    Product,
    ScrapingResult,
    SizeGuide,
    gendered_brand,
)
from size_guide_locator import (
    DropdownSizeGuideLocator,
    GridSizeGuideLocator,
    SizeGuideLocator,
)
from size_labels import STANDARD_CODES, short_label, standardize_rows

logger = logging.getLogger(__name__)


def brand_from_url(url: str) -> str:
    """'https://www.kleman-france.com' -> 'Kleman-france'"""
    host = urlparse(url).hostname or url
    name = host.replace("www.", "").split(".")[0]
    return name[:1].upper() + name[1:]


def assign_size_guides(products: List[Product], guides: List[SizeGuide]) -> None:
    """Number guides 1..n and link every product to one of them.

    With gender-split guides a product gets the guide of its gender, or the
    first guide when none matches. Without a split everyone gets the first
    guide. The reason is kept in Product.size_guide_match.
    """
    for i, guide in enumerate(guides, 1):
        guide.id = i

    if not guides:
        for product in products:
            product.size_guide_id = None
            product.size_guide_match = ""
        return

    by_gender = {g.gender: g for g in reversed(guides) if g.gender}
    for product in products:
        if not by_gender:
            product.size_guide_id = guides[0].id
            product.size_guide_match = MATCH_SINGLE_GUIDE
        elif product.gender in by_gender:
            product.size_guide_id = by_gender[product.gender].id
            product.size_guide_match = MATCH_GENDER
        else:
            product.size_guide_id = guides[0].id
            product.size_guide_match = MATCH_FALLBACK


# =============================================================================
# BASE ADAPTER
# =============================================================================

class SiteAdapter(ABC):
    """Base class for all site adapters."""

    name: str = "base"
    brand: str = ""
    engine: str = "chromium"
    hosts: Sequence[str] = ()

    def matches(self, url: str) -> bool:
        lower = url.lower()
        return any(host in lower for host in self.hosts)

    def discover_products(self, url: str) -> List[Product]:
        return discover_products(url, self.engine)

    @abstractmethod
    def find_size_guides(self, url: str, products: List[Product]) -> List[SizeGuide]:
        """Zero or one guide per grouping (e.g. per gender)."""
        pass

    def scrape(self, url: str) -> ScrapingResult:
        """List products, look for size guides, link them together."""
        url = url.rstrip("/")

        logger.info(f"\n📦 Crawling products ({self.name})...")
        products = self.discover_products(url)
        logger.info(f"  Found {len(products)} products")

        logger.info("\n🔍 Looking for size guide...")
        guides = self.find_size_guides(url, products)
        if guides:
            logger.info(f"  ✓ {len(guides)} size guide(s) found")
        else:
            logger.info("  ⚠️ No size guide found")

        assign_size_guides(products, guides)
        return ScrapingResult(products=products, size_guides=guides)

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r}, engine={self.engine!r})"


# =============================================================================
# KLEMAN (Shopify feed, gender-split div-grid guides)
# =============================================================================

class KlemanAdapter(SiteAdapter):

    name = "kleman"
    brand = "Kleman"
    hosts = ("kleman-france.com", "kleman.com")

    GRID_HEADINGS = {
        GENDER_MEN: "Pointures Homme",
        GENDER_WOMEN: "Pointures Femme",
    }
    TRIGGERS = [
        'button:has-text("Guide des tailles")',
        "text=Guide des tailles",
        '[class*="size-guide"]',
    ]
    TABLE_TRIGGERS = [
        'text=/guide des tailles/i',
        'text=/size guide/i',
        'text=/guide de taille/i',
        'text=/tableau des tailles/i',
        '[class*="size-guide"]',
        '[class*="size_guide"]',
        '[class*="sizeguide"]',
        '[data-action*="size-guide"]',
        '[href*="size-guide"]',
        '[href*="guide-taille"]',
    ]

    def discover_products(self, url: str) -> List[Product]:
        logger.info("  Fetching products from Shopify feed...")
        return feed_products(url)

    def grid_locator(self, gender: str) -> GridSizeGuideLocator:
        return GridSizeGuideLocator(
            brand=gendered_brand(self.brand, gender),
            container_selector=".size-guide-table",
            item_selector=".size-guide-table__content__item",
            title_selector=".panel-size-guide__table-title, .size-guide-table__title",
            heading=self.GRID_HEADINGS[gender],
            anchor_label=self.brand,
            extra_triggers=['button:has-text("Équivalence des tailles")'],
            guide_paths=[],
            trigger_selectors=self.TRIGGERS,
            engine=self.engine,
            sample_size=3,
            brands=(self.brand,),
        )

    def find_size_guides(self, url: str, products: List[Product]) -> List[SizeGuide]:
        guides = []
        for gender in self.GRID_HEADINGS:
            sample = [p.url for p in products if p.gender == gender] or [p.url for p in products]
            guide = self.grid_locator(gender).find(url, sample)
            if guide:
                guide.rows = standardize_rows(guide.rows)
                guides.append(guide)

        if guides:
            return guides

        # Older product pages carry a plain <table>
        locator = SizeGuideLocator(
            brand=self.brand,
            guide_paths=[],
            trigger_selectors=self.TABLE_TRIGGERS,
            engine=self.engine,
            sample_size=3,
            brands=(self.brand,),
        )
        guide = locator.find(url, [p.url for p in products])
        return [guide] if guide else []


# =============================================================================
# LA BOTTE GARDIANE (Shopify feed, static guide page)
# =============================================================================

class LaBotteGardianeAdapter(SiteAdapter):

    name = "labottegardiane"
    brand = "La Botte Gardiane"
    hosts = ("labottegardiane.com",)

    def discover_products(self, url: str) -> List[Product]:
        logger.info("  Fetching products from Shopify feed...")
        return feed_products(url)

    def find_size_guides(self, url: str, products: List[Product]) -> List[SizeGuide]:
        locator = SizeGuideLocator(
            brand=self.brand,
            guide_paths=[
                "/pages/guide-des-tailles",
                "/pages/size-guide",
                "/pages/guide-taille",
                "/pages/guide-des-pointures",
            ],
            trigger_selectors=[
                "text=/guide des tailles/i",
                "text=/size guide/i",
                "text=/correspondance/i",
                '[class*="size-guide"]',
            ],
            table_tokens=("eu", "uk", "cm"),
            engine=self.engine,
            sample_size=3,
        )
        guide = locator.find(url, [p.url for p in products])
        return [guide] if guide else []


# =============================================================================
# PRADA (Firefox, category crawl, dropdown-driven table)
# =============================================================================

class PradaAdapter(SiteAdapter):

    name = "prada"
    brand = "Prada"
    # Chromium gets HTTP/2 errors from Prada's bot protection
    engine = "firefox"
    hosts = ("prada.com",)

    CATEGORIES = {
        "/fr/fr/men/shoes.html": GENDER_MEN,
        "/fr/fr/women/shoes.html": GENDER_WOMEN,
    }
    PRODUCT_LINK_SELECTOR = 'a[href*="/fr/fr/p/"]'
    TRIGGERS = [
        '[data-element="size-guide-trigger"]',
        'button:has-text("Tableau des tailles")',
        'button:has-text("Size guide")',
        "text=/tableau des tailles/i",
    ]

    def discover_products(self, url: str) -> List[Product]:
        products: List[Product] = []
        seen = set()

        for path, gender in self.CATEGORIES.items():
            category_url = f"{url}{path}"
            logger.info(f"  Crawling: {category_url}")
            try:
                with browser.open_page(self.engine) as page:
                    if browser.goto(page, category_url, "domcontentloaded", 25000) is None:
                        continue
                    browser.dismiss_cookie_banner(page)
                    page.wait_for_timeout(3000)
                    browser.scroll_page(page, times=3, pause_ms=1500)
                    soup = browser.page_soup(page)
            except Exception as e:
                logger.warning(f"  ✗ Error crawling {category_url}: {e}")
                continue

            for link in soup.select(self.PRODUCT_LINK_SELECTOR):
                product_url = resolve_link(link.get("href"), url)
                if product_url is None or product_url in seen:
                    continue
                name = clean_product_name(link.get("aria-label") or link.get_text())
                if len(name) < 3 or is_blocked_name(name):
                    continue
                seen.add(product_url)
                products.append(Product(
                    name=name,
                    gender=gender,
                    type=detect_type(name),
                    url=product_url,
                ))

        return products

    @staticmethod
    def wanted_system(option: str) -> bool:
        return short_label(option) in STANDARD_CODES

    def find_size_guides(self, url: str, products: List[Product]) -> List[SizeGuide]:
        locator = DropdownSizeGuideLocator(
            brand=self.brand,
            table_selector="table.size-table__table",
            control_selector="select[name='select country']",
            wanted=self.wanted_system,
            guide_paths=[],
            trigger_selectors=self.TRIGGERS,
            engine=self.engine,
            sample_size=3,
            brands=(self.brand,),
            product_wait_until="domcontentloaded",
            navigation_timeout=25000,
            settle_ms=5000,
            force_click=True,
        )
        guide = locator.find(url, [p.url for p in products])
        if not guide:
            return []
        guide.rows = standardize_rows(guide.rows)
        return [guide]


# =============================================================================
# GENERIC (fallback for any site)
# =============================================================================

class GenericAdapter(SiteAdapter):
    """Heuristics only: feed or crawl, conventional guide pages, triggers."""

    name = "generic"

    def matches(self, url: str) -> bool:
        return True

    def find_size_guides(self, url: str, products: List[Product]) -> List[SizeGuide]:
        locator = SizeGuideLocator(brand=brand_from_url(url), engine=self.engine)
        guide = locator.find(url, [p.url for p in products])
        return [guide] if guide else []


# =============================================================================
# ADAPTER REGISTRY
# =============================================================================

ADAPTERS: List[SiteAdapter] = [
    KlemanAdapter(),
    LaBotteGardianeAdapter(),
    PradaAdapter(),
    GenericAdapter(),
]


def get_adapter(url: str, adapters: Optional[Sequence[SiteAdapter]] = None) -> Optional[SiteAdapter]:
    """First adapter whose predicate accepts the URL."""
    for adapter in ADAPTERS if adapters is None else adapters:
        if adapter.matches(url):
            return adapter
    return None
