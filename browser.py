"""
Browser - Shared Playwright engine for all page visits
=======================================================
One Playwright driver and one browser per engine live for the whole process.
Each page visit gets its own context (fresh cookies and storage) that is
closed when the visit ends. Call shutdown() before exiting.

Every helper here treats failure as "not found": they log and return
None/False so callers can try their next candidate.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Default configuration
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
LOCALE = "fr-FR"
NAVIGATION_TIMEOUT_MS = 15000
ACTION_TIMEOUT_MS = 10000
VISIBLE_TIMEOUT_MS = 1000
CLICK_SETTLE_MS = 1500
ENGINES = ("chromium", "firefox")

COOKIE_BANNER_SELECTORS = [
    'button:has-text("Tout accepter")',
    'button:has-text("Accepter")',
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    "#onetrust-accept-btn-handler",
]


def headless_enabled() -> bool:
    return os.environ.get("SIZE_GUIDE_HEADLESS", "1").lower() not in ("0", "false", "no")


# =============================================================================
# BROWSER MANAGER
# =============================================================================

class BrowserManager:
    """Lazily started browsers, one isolated context per page visit."""

    def __init__(self, headless: Optional[bool] = None):
        self.headless = headless_enabled() if headless is None else headless
        self._playwright: Any = None
        self._browsers: Dict[str, Any] = {}

    def _ensure_playwright(self):
        if self._playwright is None:
            from playwright.sync_api import sync_playwright
            self._playwright = sync_playwright().start()
        return self._playwright

    def get_browser(self, engine: str = "chromium"):
        """Launch (once) and return the browser for an engine."""
        if engine not in ENGINES:
            raise ValueError(f"Unknown browser engine '{engine}'. Available: {', '.join(ENGINES)}")
        if engine not in self._browsers:
            playwright = self._ensure_playwright()
            logger.debug(f"Launching {engine} (headless={self.headless})")
            self._browsers[engine] = getattr(playwright, engine).launch(headless=self.headless)
        return self._browsers[engine]

    @contextmanager
    def new_page(self, engine: str = "chromium") -> Iterator[Any]:
        """Yield a page in a fresh context, closing the context afterwards."""
        browser = self.get_browser(engine)
        context = browser.new_context(user_agent=USER_AGENT, locale=LOCALE)
        context.set_default_timeout(ACTION_TIMEOUT_MS)
        try:
            yield context.new_page()
        finally:
            try:
                context.close()
            except Exception as e:
                logger.debug(f"Context close failed: {e}")

    def shutdown(self) -> None:
        """Close every browser and stop the driver."""
        for engine, browser in list(self._browsers.items()):
            try:
                browser.close()
            except Exception as e:
                logger.debug(f"Closing {engine} failed: {e}")
        self._browsers = {}
        if self._playwright:
            try:
                self._playwright.stop()
            except Exception as e:
                logger.debug(f"Stopping Playwright failed: {e}")
        self._playwright = None


_manager: Optional[BrowserManager] = None


def get_manager() -> BrowserManager:
    global _manager
    if _manager is None:
        _manager = BrowserManager()
    return _manager


def open_page(engine: str = "chromium"):
    """Context manager giving an isolated page on the shared browser."""
    return get_manager().new_page(engine)


def shutdown() -> None:
    global _manager
    if _manager is not None:
        _manager.shutdown()
        _manager = None


# =============================================================================
# PAGE HELPERS
# =============================================================================

def goto(page, url: str, wait_until: str = "domcontentloaded",
         timeout: int = NAVIGATION_TIMEOUT_MS):
    """Navigate, returning the response or None on failure/HTTP error."""
    try:
        response = page.goto(url, wait_until=wait_until, timeout=timeout)
    except Exception as e:
        logger.warning(f"  ✗ Could not load {url}: {e}")
        return None
    if response is not None and response.status >= 400:
        logger.debug(f"  ✗ {url} answered HTTP {response.status}")
        return None
    return response


def click_first_visible(page, selectors: Sequence[str], timeout: int = VISIBLE_TIMEOUT_MS,
                        settle_ms: int = CLICK_SETTLE_MS, force: bool = False) -> Optional[str]:
    """Click the first element among selectors that becomes visible within timeout.

    Missing, hidden or failing candidates fall through to the next selector.
    """
    for selector in selectors:
        try:
            element = page.locator(selector).first
            element.wait_for(state="visible", timeout=timeout)
            element.click(force=force)
            page.wait_for_timeout(settle_ms)
            logger.debug(f"  Clicked trigger: {selector}")
            return selector
        except Exception:
            continue
    return None


def dismiss_cookie_banner(page, timeout: int = 3000) -> bool:
    """Accept the cookie banner if one shows up."""
    return click_first_visible(page, COOKIE_BANNER_SELECTORS, timeout=timeout,
                               settle_ms=1000) is not None


def scroll_page(page, times: int = 3, pause_ms: int = 1500) -> None:
    """Scroll to the bottom a few times to trigger lazy loading."""
    for _ in range(times):
        try:
            page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            page.wait_for_timeout(pause_ms)
        except Exception as e:
            logger.debug(f"Scroll failed: {e}")
            return


def page_soup(page) -> BeautifulSoup:
    """Parse the current DOM of a page."""
    return BeautifulSoup(page.content(), "lxml")
