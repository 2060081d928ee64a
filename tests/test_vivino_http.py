"""
Unit tests for the curl_cffi client, with the HTTP session replaced by a stub.
"""

import pytest

from models.models import CatalogError, ShipTo
from scrapers.vivino_http import HttpVivinoClient

LANDING = """
<html><head>
  <meta name="csrf-token" content="tok-123">
  <script>
    window.__PRELOADED_COUNTRY_CODE__ = "us";
    window.__PRELOADED_STATE_CODE__ = 'ny';
  </script>
</head><body></body></html>
"""

SEARCH_PAGE = """
<div class="card card-lg"><span class="wine-card__name">Rioja Reserva</span>
  <span class="wine-price-value">$18.50</span></div>
"""


class FakeResponse:
    def __init__(self, status_code, text="", data=None):
        self.status_code = status_code
        self.text = text
        self._data = data or {}

    def json(self):
        return self._data


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self.responses.pop(0)

    async def put(self, url, **kwargs):
        self.calls.append(("PUT", url, kwargs))
        return self.responses.pop(0)


def client_with(landing="", *responses):
    client = HttpVivinoClient()
    client._landing_html = landing
    client._session = FakeSession(*responses)
    return client


class TestCurrentDestination:

    @pytest.mark.asyncio
    async def test_preloaded_codes_are_parsed(self):
        client = client_with(LANDING)
        assert await client.current_destination() == ShipTo(country_code="us", state_code="ny")

    @pytest.mark.asyncio
    async def test_missing_markers_give_empty_destination(self):
        client = client_with("<html><body>maintenance</body></html>")
        assert await client.current_destination() == ShipTo(country_code="", state_code="")


class TestUpdateDestination:

    @pytest.mark.asyncio
    async def test_missing_csrf_token(self):
        landing = LANDING.replace('<meta name="csrf-token" content="tok-123">', "")
        client = client_with(landing)

        assert await client.update_destination("US", "CA") is None
        assert client._session.calls == []

    @pytest.mark.asyncio
    async def test_echoed_destination(self):
        echo = FakeResponse(200, data={"ship_to": {"country_code": "us", "state_code": "ca"}})
        client = client_with(LANDING, echo)

        result = await client.update_destination("US", "CA")

        assert result == ShipTo(country_code="us", state_code="ca")
        method, url, kwargs = client._session.calls[0]
        assert method == "PUT"
        assert url == "https://www.vivino.com/api/ship_to/"
        assert kwargs["json"] == {"country_code": "US", "state_code": "CA"}
        assert kwargs["headers"]["x-csrf-token"] == "tok-123"

    @pytest.mark.asyncio
    async def test_rejected_update(self):
        client = client_with(LANDING, FakeResponse(422))
        assert await client.update_destination("US", "CA") is None


class TestPages:

    @pytest.mark.asyncio
    async def test_landing_error_raises(self):
        client = client_with("", FakeResponse(503))
        with pytest.raises(CatalogError):
            await client.load_landing()

    @pytest.mark.asyncio
    async def test_fetch_and_extract(self):
        client = client_with("", FakeResponse(200, text=SEARCH_PAGE))

        response = await client.fetch_page(client.search_url("rioja", 1))
        wines = await client.extract_records()

        assert response.ok and response.status == 200
        assert [(w.name, w.price) for w in wines] == [("Rioja Reserva", 18.5)]

    @pytest.mark.asyncio
    async def test_rate_limited_page_has_no_records(self):
        client = client_with("", FakeResponse(429, text=SEARCH_PAGE))

        response = await client.fetch_page(client.search_url("rioja", 1))

        assert not response.ok
        assert response.status == 429
        assert await client.extract_records() == []

    @pytest.mark.asyncio
    async def test_closed_client_raises(self):
        client = HttpVivinoClient()
        with pytest.raises(CatalogError):
            await client.fetch_page("https://www.vivino.com/")
