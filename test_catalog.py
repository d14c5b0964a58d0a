"""
Tests for product discovery and classification.
"""
import json

import httpx
import pytest
from bs4 import BeautifulSoup

import catalog
from catalog import (
    clean_product_name,
    detect_gender,
    detect_type,
    extract_product_links,
    feed_products,
    fetch_feed,
    find_category_links,
    image_link_products,
    name_from_url,
)


def feed_client(pages, status=200):
    """httpx client answering /products.json from a list of pages."""
    calls = []

    def handler(request):
        calls.append(dict(request.url.params))
        page = int(request.url.params.get("page", "1"))
        if status != 200:
            return httpx.Response(status)
        products = pages[page - 1] if page <= len(pages) else []
        return httpx.Response(200, content=json.dumps({"products": products}))

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return client, calls


class TestDetectGender:
    """Ordered gender guards."""

    @pytest.mark.parametrize("text,expected", [
        ("Derby Noir homme", "Homme"),
        ("Bottines Femme", "Femme"),
        ("Women's loafer", "Femme"),
        ("Men's loafer", "Homme"),
        ("Basket enfant", "Enfant"),
        ("Sandale", "Unisex"),
    ])
    def test_keywords(self, text, expected):
        """Should pick the first matching gender, Unisex by default"""
        assert detect_gender(text) == expected

    def test_women_wins_over_men(self):
        """Should not classify 'women' as men"""
        assert detect_gender("shoes for women") == "Femme"

    def test_from_url(self):
        """Should work on URLs"""
        assert detect_gender("https://www.prada.com/fr/fr/men/shoes.html") == "Homme"


class TestDetectType:
    """Ordered type guards."""

    @pytest.mark.parametrize("text,expected", [
        ("Bottine Cuir", "Ankle Boots"),
        ("Chelsea Boot", "Boots"),
        ("Sandale Camargue", "Sandals"),
        ("Basket Runner", "Sneakers"),
        ("Mocassin Padror", "Loafers"),
        ("Derby Noir", "Derby"),
        ("Ceinture cuir", "Belt"),
        ("Chose", "Shoes"),
    ])
    def test_keywords(self, text, expected):
        """Should return the first matching type, Shoes by default"""
        assert detect_type(text) == expected

    def test_default_override(self):
        """Should fall back to the given default"""
        assert detect_type("Chose", default="Chaussures") == "Chaussures"


class TestCleanProductName:
    """Product name cleanup."""

    def test_price_and_runway(self):
        """Should remove runway prefix and trailing price"""
        assert clean_product_name("FROM THE RUNWAY Derbies en cuir € 1 200") == "Derbies en cuir"

    def test_first_line_only(self):
        """Should keep the first non-empty line"""
        assert clean_product_name("\n  Derby Noir \n 189,00 €\n") == "Derby Noir"

    def test_disponible_en(self):
        """Should strip color availability suffixes"""
        assert clean_product_name("Mocassins Disponible en 3 couleurs") == "Mocassins"

    def test_price_after_name(self):
        """Should strip prices written before the currency"""
        assert clean_product_name("Derby Noir 189,00 €") == "Derby Noir"

    def test_name_from_url(self):
        """Should build a readable name from a slug"""
        assert name_from_url("https://x.com/products/derby-noir") == "Derby Noir"


class TestFeed:
    """Structured product feed."""

    def test_derby_noir_scenario(self):
        """Should map one feed entry to one Homme product with a /products/ URL"""
        client, _ = feed_client([[{"title": "Derby Noir", "tags": ["homme"], "handle": "derby-noir"}]])
        products = feed_products("https://www.example.com", client)
        assert len(products) == 1
        product = products[0]
        assert product.name == "Derby Noir"
        assert product.gender == "Homme"
        assert product.url.endswith("/products/derby-noir")
        assert product.size_guide_id is None

    def test_paging_stops_on_short_page(self, monkeypatch):
        """Should request the next page only after a full one"""
        full = [{"title": f"P{i}", "handle": f"p{i}"} for i in range(2)]
        short = [{"title": "Last", "handle": "last"}]
        client, calls = feed_client([full, short, full])
        entries = fetch_feed("https://www.example.com", client, page_size=2)
        assert len(entries) == 3
        assert [c["page"] for c in calls] == ["1", "2"]
        assert calls[0]["limit"] == "2"

    def test_paging_stops_on_empty_page(self):
        """Should stop on an empty page"""
        full = [{"title": f"P{i}", "handle": f"p{i}"} for i in range(2)]
        client, calls = feed_client([full])
        entries = fetch_feed("https://www.example.com", client, page_size=2)
        assert len(entries) == 2
        assert len(calls) == 2

    def test_http_error_gives_nothing(self):
        """Should treat an error status as no feed"""
        client, _ = feed_client([], status=404)
        assert feed_products("https://www.example.com", client) == []

    def test_string_tags_and_type(self):
        """Should accept comma-separated tags and use product_type"""
        client, _ = feed_client([[{"title": "Gardiane", "tags": "femme, cuir",
                                   "product_type": "Bottes", "handle": "gardiane"}]])
        product = feed_products("https://www.example.com", client)[0]
        assert product.gender == "Femme"
        assert product.type == "Boots"


class TestExtractProductLinks:
    """Heuristic link extraction."""

    HOME = """
        <html><body>
          <nav><a href="/collections/homme">Homme</a></nav>
          <a href="/products/derby-noir"><img alt="Derby Noir"></a>
          <a href="/products/derby-noir">Derby Noir<br>189,00 €</a>
          <a href="/products/padror">Padror
             Nouveau</a>
          <a href="/products/padror">Padror</a>
          <a href="/products/boutique">Boutique</a>
        </body></html>
    """

    def test_one_product_per_distinct_href(self):
        """Should dedupe repeated hrefs"""
        soup = BeautifulSoup(self.HOME, "lxml")
        products = extract_product_links(soup, "https://www.example.com")
        urls = [p.url for p in products]
        assert urls == ["https://www.example.com/products/derby-noir",
                        "https://www.example.com/products/padror"]

    def test_image_alt_used_for_name(self):
        """Should fall back to the image alt text"""
        soup = BeautifulSoup(self.HOME, "lxml")
        products = extract_product_links(soup, "https://www.example.com")
        assert products[0].name == "Derby Noir"

    def test_blocklisted_names_rejected(self):
        """Should skip navigation labels masquerading as products"""
        soup = BeautifulSoup(self.HOME, "lxml")
        names = [p.name for p in extract_product_links(soup, "https://www.example.com")]
        assert "Boutique" not in names

    def test_gender_given_by_category(self):
        """Should use the category gender when given"""
        soup = BeautifulSoup(self.HOME, "lxml")
        products = extract_product_links(soup, "https://www.example.com", gender="Femme")
        assert {p.gender for p in products} == {"Femme"}

    def test_shared_seen_set(self):
        """Should skip URLs already seen on a previous page"""
        soup = BeautifulSoup(self.HOME, "lxml")
        seen = {"https://www.example.com/products/derby-noir"}
        products = extract_product_links(soup, "https://www.example.com", seen=seen)
        assert [p.name for p in products] == ["Padror"]

    def test_no_links(self):
        """Should return nothing when no selector matches"""
        soup = BeautifulSoup("<html><body><a href='/about'>About</a></body></html>", "lxml")
        assert extract_product_links(soup, "https://www.example.com") == []

    def test_same_product_written_three_ways(self):
        """Should give one product for relative, absolute and fragment hrefs"""
        soup = BeautifulSoup("""
            <a href="/products/derby-noir">Derby Noir</a>
            <a href="https://www.example.com/products/derby-noir">Derby Noir</a>
            <a href="/products/derby-noir#reviews">Avis</a>
        """, "lxml")
        products = extract_product_links(soup, "https://www.example.com")
        assert len(products) == 1
        assert products[0].url == "https://www.example.com/products/derby-noir"

    def test_blocked_first_occurrence_does_not_hide_product(self):
        """Should keep a product whose first link carries only a badge"""
        soup = BeautifulSoup("""
            <a href="/products/derby-noir"><img alt="Nouveautés"></a>
            <a href="/products/derby-noir">Derby Noir</a>
        """, "lxml")
        seen = set()
        products = extract_product_links(soup, "https://www.example.com", seen=seen)
        assert [p.name for p in products] == ["Derby Noir"]
        assert seen == {"https://www.example.com/products/derby-noir"}

    def test_off_site_links_ignored(self):
        """Should not catalog links to other hosts"""
        soup = BeautifulSoup("""
            <a href="https://www.instagram.com/p/CxYz123/">Instagram post</a>
            <a href="/p/derby-noir">Derby Noir</a>
        """, "lxml")
        products = extract_product_links(soup, "https://www.example.com")
        assert [p.url for p in products] == ["https://www.example.com/p/derby-noir"]


class TestImageLinkProducts:
    """Image adjacency fallback."""

    def test_filters_chrome_and_short_paths(self):
        """Should keep deep image links outside cart/account/blog"""
        soup = BeautifulSoup("""
            <a href="/chaussures/derby-noir"><img src="a.jpg" alt="Derby Noir"></a>
            <a href="/blog/article-1"><img src="b.jpg" alt="Article"></a>
            <a href="/cart"><img src="c.jpg" alt="Panier"></a>
            <a href="/account/login"><img src="d.jpg" alt="Compte"></a>
            <a href="/chaussures/text-only">No image</a>
            <a href="https://other.com/x/y"><img src="e.jpg" alt="Other"></a>
        """, "lxml")
        products = image_link_products(soup, "https://www.example.com")
        assert [p.url for p in products] == ["https://www.example.com/chaussures/derby-noir"]


class TestFindCategoryLinks:
    """Category discovery from navigation."""

    def test_keyword_links(self):
        """Should keep same-site navigation links with category keywords"""
        soup = BeautifulSoup("""
            <header>
              <a href="/">Accueil</a>
              <a href="/collections/chaussures-homme">Homme</a>
              <a href="/collections/femme">Femme</a>
              <a href="/pages/contact">Contact</a>
              <a href="https://instagram.com/shop">Instagram</a>
            </header>
        """, "lxml")
        links = find_category_links(soup, "https://www.example.com")
        assert links == ["https://www.example.com/collections/chaussures-homme",
                         "https://www.example.com/collections/femme"]


class TestDiscoverProducts:
    """Feed first, crawl second."""

    def test_feed_wins(self, monkeypatch):
        """Should not crawl when the feed has products"""
        client, _ = feed_client([[{"title": "Derby", "handle": "derby"}]])
        monkeypatch.setattr(catalog, "crawl_products",
                            lambda *a, **k: pytest.fail("crawl should not run"))
        products = catalog.discover_products("https://www.example.com", client=client)
        assert len(products) == 1

    def test_crawl_when_feed_empty(self, monkeypatch):
        """Should crawl when the feed is unavailable"""
        client, _ = feed_client([], status=404)
        monkeypatch.setattr(catalog, "crawl_products", lambda base_url, engine: ["crawled"])
        assert catalog.discover_products("https://www.example.com", client=client) == ["crawled"]
