import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup
from curl_cffi.requests import AsyncSession
from pydantic import PrivateAttr

from models.base_client import CatalogClient, SHIP_TO_PATH, USER_AGENT
from models.models import CatalogError, PageResponse, ShipTo, WineRecord
from scrapers.extractor import extract_wines

logger = logging.getLogger(__name__)

COUNTRY_REGEX = re.compile(r"__PRELOADED_COUNTRY_CODE__\s*=\s*[\"']([^\"']*)[\"']")
STATE_REGEX = re.compile(r"__PRELOADED_STATE_CODE__\s*=\s*[\"']([^\"']*)[\"']")


class HttpVivinoClient(CatalogClient):
    """
    Plain HTTP client for Vivino using curl_cffi.

    Lighter than the browser client, but only sees server-rendered markup.
    """

    backend_id: str = "http"
    impersonate: str = "chrome124"
    timeout: int = 30

    _session = PrivateAttr(default=None)
    _landing_html = PrivateAttr(default="")
    _last_html = PrivateAttr(default="")

    async def open(self) -> None:
        # impersonate="chrome124" mimics a modern Chrome browser TLS fingerprint
        self._session = AsyncSession(
            headers={
                "accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
                "user-agent": USER_AGENT,
            },
            impersonate=self.impersonate,
            timeout=self.timeout,
        )

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.info("Vivino (HTTP): Session closed")

    def _require_session(self) -> AsyncSession:
        if self._session is None:
            raise CatalogError("HTTP session is not open")
        return self._session

    async def load_landing(self) -> None:
        resp = await self._require_session().get(self.base_url)
        if resp.status_code != 200:
            raise CatalogError(f"Landing page returned status {resp.status_code}")
        self._landing_html = resp.text

    async def current_destination(self) -> ShipTo:
        country = COUNTRY_REGEX.search(self._landing_html)
        state = STATE_REGEX.search(self._landing_html)
        return ShipTo(
            country_code=country.group(1) if country else "",
            state_code=state.group(1) if state else "",
        )

    async def update_destination(self, country_code: str, state_code: str) -> Optional[ShipTo]:
        soup = BeautifulSoup(self._landing_html, "lxml")
        csrf = soup.select_one('[name="csrf-token"]')
        if not csrf or not csrf.get("content"):
            logger.warning("Vivino (HTTP): CSRF token not found on landing page")
            return None

        resp = await self._require_session().put(
            f"{self.base_url}{SHIP_TO_PATH}",
            json={"country_code": country_code, "state_code": state_code},
            headers={
                "content-type": "application/json",
                "x-csrf-token": csrf["content"],
                "referer": f"{self.base_url}/",
            },
        )
        if resp.status_code != 200:
            logger.warning("Vivino (HTTP): Ship To API returned status %s", resp.status_code)
            return None

        ship_to = resp.json().get("ship_to") or {}
        return ShipTo(
            country_code=ship_to.get("country_code") or "",
            state_code=ship_to.get("state_code") or "",
        )

    async def fetch_page(self, url: str) -> PageResponse:
        logger.debug("Vivino (HTTP): Requesting %s", url)
        resp = await self._require_session().get(url)
        ok = 200 <= resp.status_code < 300
        self._last_html = resp.text if ok else ""
        return PageResponse(ok=ok, status=resp.status_code)

    async def extract_records(self) -> List[WineRecord]:
        return extract_wines(self._last_html, self.base_url)
