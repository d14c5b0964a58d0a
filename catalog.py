"""
Catalog - Product discovery and classification
===============================================
Two ways to list a site's products, tried in order:

1. Structured feed: Shopify's paged /products.json endpoint (httpx)
2. Heuristic crawl: product links on the home page, then on category pages
   found in the navigation, then links wrapping an image as a last resort

Gender and type come from ordered keyword guards; the first match wins.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple
from urllib.parse import urljoin, urldefrag, urlparse

import httpx
from bs4 import BeautifulSoup

import browser
from models import (
    DEFAULT_TYPE,
    GENDER_KIDS,
    GENDER_MEN,
    GENDER_UNISEX,
    GENDER_WOMEN,
    Product,
)
from size_labels import contains_keyword, normalize_text

logger = logging.getLogger(__name__)

# Default configuration
FEED_PATH = "/products.json"
FEED_PAGE_SIZE = 250
MAX_FEED_PAGES = 40
DEFAULT_TIMEOUT = 30
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

HOME_TIMEOUT_MS = 15000
CATEGORY_TIMEOUT_MS = 10000
MIN_HOME_PRODUCTS = 5
MAX_CATEGORIES = 8
CATEGORY_PRODUCT_TARGET = 10

PRODUCT_LINK_SELECTORS = [
    'a[href*="/products/"]',
    'a[href*="/product/"]',
    'a[href*="/p/"]',
    'a[href*="/produit/"]',
    ".product-card a",
    ".product-item a",
    "[data-product] a",
]

NAV_LINK_SELECTOR = "nav a, .menu a, header a"

CATEGORY_KEYWORDS = [
    "chaussure", "shoe", "homme", "femme", "enfant", "collection",
    "shop", "boutique", "men", "women", "sneaker", "basket", "botte", "boot",
]

EXCLUDED_PATH_PARTS = [
    "cart", "panier", "login", "account", "compte", "blog", "search",
    "recherche", "wishlist", "contact", "policies", "pages", "cgv",
]

NAME_BLOCKLIST = {
    "nouveautes", "nouveaute", "boutique", "shop", "homme", "femme", "enfant",
    "collection", "collections", "soldes", "sale", "voir tout", "tout voir",
    "view all", "shop all", "accueil", "home", "panier", "cart", "unknown",
}

BADGE_WORDS = ["nouveauté", "nouveaute", "nouveau", "sold out", "épuisé", "epuise", "best seller", "promo"]

# (gender, keywords) in priority order: "women" must win over "men"
GENDER_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    (GENDER_WOMEN, ("femme", "women", "woman", "womens", "donna")),
    (GENDER_MEN, ("homme", "men", "man", "mens", "uomo")),
    (GENDER_KIDS, ("enfant", "kid", "kids", "junior", "child", "children", "bebe")),
    (GENDER_UNISEX, ("unisex", "unisexe", "mixte")),
]

# (type, keywords) in priority order
TYPE_RULES: List[Tuple[str, Tuple[str, ...]]] = [
    ("Ankle Boots", ("bottine", "ankle boot")),
    ("Boots", ("botte", "boot")),
    ("Sandals", ("sandale", "sandal")),
    ("Sneakers", ("basket", "sneaker")),
    ("Loafers", ("mocassin", "loafer")),
    ("Derby", ("derby", "derbies", "richelieu")),
    ("Pumps", ("escarpin", "pump")),
    ("Mules", ("mule", "slide")),
    ("Espadrilles", ("espadrille",)),
    ("Belt", ("ceinture", "belt")),
    ("Bag", ("sac", "bag", "pochette")),
]


# =============================================================================
# CLASSIFIERS
# =============================================================================

def detect_gender(*texts: str, default: str = GENDER_UNISEX) -> str:
    """Gender from free text (title, tags, category, URL)."""
    text = " ".join(t for t in texts if t)
    for gender, keywords in GENDER_RULES:
        if contains_keyword(text, keywords):
            return gender
    return default


def detect_type(*texts: str, default: str = DEFAULT_TYPE) -> str:
    """Product type from free text (title, category)."""
    text = " ".join(t for t in texts if t)
    for product_type, keywords in TYPE_RULES:
        if contains_keyword(text, keywords):
            return product_type
    return default or DEFAULT_TYPE


def clean_product_name(text: Optional[str]) -> str:
    """First line of a link text, without runway prefix, price or badges."""
    lines = [l.strip() for l in (text or "").splitlines() if l.strip()]
    name = lines[0] if lines else ""
    name = re.sub(r"FROM THE RUNWAY\s*", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s*(€|EUR|\$|£)\s*[\d\s.,]+.*$", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s*[\d\s.,]+\s*(€|EUR)\s*.*$", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s*Disponible en.*$", "", name, flags=re.IGNORECASE)
    for badge in BADGE_WORDS:
        name = re.sub(rf"^\s*{re.escape(badge)}\s*[-:|]?\s+", "", name, flags=re.IGNORECASE)
    return " ".join(name.split())


def is_blocked_name(name: str) -> bool:
    return normalize_text(name) in NAME_BLOCKLIST


def name_from_url(url: str) -> str:
    """'.../products/derby-noir' -> 'Derby Noir'"""
    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return ""
    slug = re.sub(r"\.html?$", "", segments[-1])
    return " ".join(slug.replace("_", "-").split("-")).title()


# =============================================================================
# STRUCTURED FEED
# =============================================================================

def create_client() -> httpx.Client:
    """Create an httpx client with HTTP/2 support."""
    return httpx.Client(
        http2=True,
        headers={'User-Agent': USER_AGENT},
        follow_redirects=True,
        timeout=DEFAULT_TIMEOUT
    )


def fetch_feed(base_url: str, client: Optional[httpx.Client] = None,
               page_size: int = FEED_PAGE_SIZE) -> List[Dict[str, Any]]:
    """Page through <base>/products.json until a short/empty page or an error."""
    base_url = base_url.rstrip("/")
    own_client = client is None
    client = client or create_client()
    entries: List[Dict[str, Any]] = []

    try:
        for page in range(1, MAX_FEED_PAGES + 1):
            try:
                resp = client.get(f"{base_url}{FEED_PATH}",
                                  params={"limit": page_size, "page": page})
                resp.raise_for_status()
                batch = resp.json().get("products") or []
            except (httpx.HTTPError, ValueError, AttributeError) as e:
                logger.debug(f"Feed page {page} unavailable: {e}")
                break

            if not batch:
                break
            entries.extend(batch)
            if len(batch) < page_size:
                break
    finally:
        if own_client:
            client.close()

    return entries


def _tags_text(tags: Any) -> str:
    if isinstance(tags, str):
        return tags.replace(",", " ")
    if isinstance(tags, (list, tuple)):
        return " ".join(str(t) for t in tags)
    return ""


def product_from_feed(entry: Dict[str, Any], base_url: str) -> Product:
    title = (entry.get("title") or "").strip()
    product_type = (entry.get("product_type") or "").strip()
    return Product(
        name=title or name_from_url(entry.get("handle", "")),
        gender=detect_gender(title, _tags_text(entry.get("tags")), product_type),
        type=detect_type(title, product_type, default=product_type or DEFAULT_TYPE),
        url=f"{base_url.rstrip('/')}/products/{entry.get('handle', '')}",
    )


def feed_products(base_url: str, client: Optional[httpx.Client] = None) -> List[Product]:
    """Products from the structured feed, deduplicated by URL."""
    products = []
    seen: Set[str] = set()
    for entry in fetch_feed(base_url, client):
        if not entry.get("handle"):
            continue
        product = product_from_feed(entry, base_url)
        if product.url in seen:
            continue
        seen.add(product.url)
        products.append(product)
    return products


# =============================================================================
# HEURISTIC CRAWL
# =============================================================================

def _same_site(url: str, base_url: str) -> bool:
    host = urlparse(url).netloc.replace("www.", "")
    return not host or host == urlparse(base_url).netloc.replace("www.", "")


def resolve_link(href: str, base_url: str) -> Optional[str]:
    """Absolute same-site URL without fragment, or None for links to skip."""
    href = (href or "").strip()
    if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
        return None
    url = urldefrag(urljoin(base_url.rstrip("/") + "/", href))[0]
    if not _same_site(url, base_url):
        return None
    return url


def _link_name(link) -> str:
    name = clean_product_name(link.get_text())
    if not name:
        img = link.find("img")
        if img is not None:
            name = clean_product_name(img.get("alt", ""))
    return name


def _build_product(link, url: str, gender: Optional[str]) -> Optional[Product]:
    name = _link_name(link) or name_from_url(url)
    if not name or is_blocked_name(name):
        return None
    return Product(
        name=name,
        gender=gender or detect_gender(name, url),
        type=detect_type(name),
        url=url,
    )


def extract_product_links(soup: BeautifulSoup, base_url: str,
                          selectors: Sequence[str] = PRODUCT_LINK_SELECTORS,
                          seen: Optional[Set[str]] = None,
                          gender: Optional[str] = None) -> List[Product]:
    """Products from the first selector that yields any, one per resolved URL.

    A URL only enters `seen` once a product was built from it, so a blocked
    first occurrence (badge-only image link) does not hide later ones.
    """
    seen = set() if seen is None else seen
    base_url = base_url.rstrip("/")

    for selector in selectors:
        products = []
        for link in soup.select(selector):
            url = resolve_link(link.get("href"), base_url)
            if url is None or url in seen:
                continue
            product = _build_product(link, url, gender)
            if product:
                seen.add(url)
                products.append(product)
        if products:
            logger.debug(f"  {len(products)} products via '{selector}'")
            return products
    return []


def image_link_products(soup: BeautifulSoup, base_url: str,
                        seen: Optional[Set[str]] = None,
                        gender: Optional[str] = None) -> List[Product]:
    """Fallback: links wrapping an image, two+ path segments, not site chrome."""
    seen = set() if seen is None else seen
    base_url = base_url.rstrip("/")
    products = []

    for link in soup.find_all("a", href=True):
        if link.find("img") is None:
            continue
        url = resolve_link(link["href"], base_url)
        if url is None or url in seen:
            continue
        segments = [s.lower() for s in urlparse(url).path.split("/") if s]
        if len(segments) < 2 or any(part in segments for part in EXCLUDED_PATH_PARTS):
            continue
        product = _build_product(link, url, gender)
        if product:
            seen.add(url)
            products.append(product)
    return products


def find_category_links(soup: BeautifulSoup, base_url: str,
                        limit: int = MAX_CATEGORIES) -> List[str]:
    """Navigation links that look like product categories."""
    base_url = base_url.rstrip("/")
    urls: List[str] = []
    for link in soup.select(NAV_LINK_SELECTOR):
        href = (link.get("href") or "").strip()
        if not href or href.startswith(("#", "javascript:", "mailto:")):
            continue
        text = link.get_text(" ", strip=True)
        if not (contains_keyword(text, CATEGORY_KEYWORDS) or contains_keyword(href, CATEGORY_KEYWORDS)):
            continue
        url = urldefrag(urljoin(base_url + "/", href))[0]
        if url.rstrip("/") == base_url or not _same_site(url, base_url) or url in urls:
            continue
        urls.append(url)
        if len(urls) >= limit:
            break
    return urls


def crawl_products(base_url: str, engine: str = "chromium") -> List[Product]:
    """Crawl the home page, then category pages, for product links."""
    base_url = base_url.rstrip("/")
    products: List[Product] = []
    seen: Set[str] = set()

    try:
        with browser.open_page(engine) as page:
            if browser.goto(page, base_url, "domcontentloaded", HOME_TIMEOUT_MS) is None:
                return []
            page.wait_for_timeout(2000)
            home = browser.page_soup(page)
            products.extend(extract_product_links(home, base_url, seen=seen))

            if len(products) >= MIN_HOME_PRODUCTS:
                return products

            for category_url in find_category_links(home, base_url):
                logger.info(f"  Exploring category: {category_url}")
                if browser.goto(page, category_url, "domcontentloaded", CATEGORY_TIMEOUT_MS) is None:
                    continue
                page.wait_for_timeout(2000)
                soup = browser.page_soup(page)
                gender = detect_gender(category_url, default="") or None
                found = extract_product_links(soup, base_url, seen=seen, gender=gender)
                if not found:
                    found = image_link_products(soup, base_url, seen=seen, gender=gender)
                products.extend(found)
                if len(products) > CATEGORY_PRODUCT_TARGET:
                    break
    except Exception as e:
        logger.warning(f"  ✗ Error crawling {base_url}: {e}")

    return products


def discover_products(base_url: str, engine: str = "chromium",
                      client: Optional[httpx.Client] = None) -> List[Product]:
    """Feed first, crawl when the feed gives nothing."""
    products = feed_products(base_url, client)
    if products:
        logger.info("  Structured product feed detected")
        return products
    return crawl_products(base_url, engine)
