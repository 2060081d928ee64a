"""
Vivino Playwright Client.

This module implements the browser-backed catalog client. Pages are rendered
by headless Chromium and the "Ship To" API is called from inside the page so
it carries the session cookies and CSRF token.

Classes:
    PlaywrightVivinoClient: Playwright-based client for www.vivino.com
"""

import logging
from typing import List, Optional

from playwright.async_api import async_playwright
from pydantic import PrivateAttr

from models.base_client import CatalogClient, SHIP_TO_PATH, USER_AGENT
from models.models import CatalogError, PageResponse, ShipTo, WineRecord
from scrapers.extractor import extract_wines


logger = logging.getLogger(__name__)

ALLOWED_RESOURCE_TYPES = ("document", "xhr", "fetch", "script")
NAVIGATION_TIMEOUT_MS = 120000

CURRENT_DESTINATION_JS = """
() => ({
    country_code: window.__PRELOADED_COUNTRY_CODE__ || "",
    state_code: window.__PRELOADED_STATE_CODE__ || "",
})
"""

UPDATE_DESTINATION_JS = """
async ([url, countryCode, stateCode]) => {
    const csrf = document.querySelector('[name="csrf-token"]');
    if (!csrf) return null;
    const response = await fetch(url, {
        headers: {
            "content-type": "application/json",
            "x-csrf-token": csrf.content,
        },
        body: JSON.stringify({ country_code: countryCode, state_code: stateCode }),
        method: "PUT",
    });
    if (response.status !== 200) return null;
    const result = await response.json();
    return result.ship_to;
}
"""


class PlaywrightVivinoClient(CatalogClient):
    """
    Browser-backed client for Vivino using Playwright.

    Images, fonts and stylesheets are blocked; only documents, scripts and
    API calls are let through.

    Attributes:
        backend_id: Identifier "playwright"
        headless: Run Chromium without a window (default True)

    Example:
        >>> async with PlaywrightVivinoClient() as client:
        ...     response = await client.fetch_page(client.search_url("malbec", 1))
        ...     wines = await client.extract_records()
    """

    backend_id: str = "playwright"
    headless: bool = True

    _playwright = PrivateAttr(default=None)
    _browser = PrivateAttr(default=None)
    _page = PrivateAttr(default=None)

    async def open(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=["--start-maximized"],
        )
        context = await self._browser.new_context(
            viewport={"width": 1920, "height": 1040},
            user_agent=USER_AGENT,
        )
        self._page = await context.new_page()
        self._page.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
        await self._page.route("**/*", self._filter_request)
        logger.info("Vivino (Playwright): Browser started (headless=%s)", self.headless)

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            self._browser = None
            self._page = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Vivino (Playwright): Browser closed")

    @staticmethod
    async def _filter_request(route) -> None:
        if route.request.resource_type in ALLOWED_RESOURCE_TYPES:
            await route.continue_()
        else:
            await route.abort()

    def _require_page(self):
        if self._page is None:
            raise CatalogError("Browser page is not open")
        return self._page

    async def load_landing(self) -> None:
        page = self._require_page()
        await page.goto(self.base_url, wait_until="networkidle")

    async def current_destination(self) -> ShipTo:
        page = self._require_page()
        data = await page.evaluate(CURRENT_DESTINATION_JS)
        return ShipTo(**data)

    async def update_destination(self, country_code: str, state_code: str) -> Optional[ShipTo]:
        page = self._require_page()
        data = await page.evaluate(
            UPDATE_DESTINATION_JS,
            [f"{self.base_url}{SHIP_TO_PATH}", country_code, state_code],
        )
        if not data:
            logger.warning("Vivino (Playwright): Ship To update was rejected")
            return None
        return ShipTo(
            country_code=data.get("country_code") or "",
            state_code=data.get("state_code") or "",
        )

    async def fetch_page(self, url: str) -> PageResponse:
        page = self._require_page()
        logger.debug("Vivino (Playwright): Loading %s", url)
        response = await page.goto(url, wait_until="networkidle")
        if response is None:
            raise CatalogError(f"No response received for {url}")
        return PageResponse(ok=response.ok, status=response.status)

    async def extract_records(self) -> List[WineRecord]:
        page = self._require_page()
        html = await page.content()
        return extract_wines(html, self.base_url)
