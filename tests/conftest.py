"""
Shared fixtures: a scripted in-memory catalog client and a sleep recorder.
"""

from typing import Any, List, Optional

import pytest
from pydantic import Field, PrivateAttr

from models.base_client import CatalogClient
from models.models import PageResponse, ShipTo, WineRecord


class FakeCatalogClient(CatalogClient):
    """
    Catalog client driven by a script of page responses.

    Each entry of ``pages`` is either ``(status, [WineRecord, ...])`` or an
    exception instance to raise from fetch_page. Once the script runs out,
    every fetch returns an empty 200 page.
    """

    backend_id: str = "fake"
    pages: List[Any] = Field(default_factory=list)
    destination: ShipTo = Field(default_factory=lambda: ShipTo(country_code="US", state_code="CA"))
    reject_update: bool = False
    apply_update: bool = True
    echo: Optional[ShipTo] = None

    fetched: List[str] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)
    opened: bool = False
    closed: bool = False

    _current: List[WineRecord] = PrivateAttr(default_factory=list)

    async def open(self) -> None:
        self.opened = True
        self.events.append("open")

    async def close(self) -> None:
        self.closed = True
        self.events.append("close")

    async def load_landing(self) -> None:
        self.events.append("landing")

    async def current_destination(self) -> ShipTo:
        return self.destination

    async def update_destination(self, country_code: str, state_code: str) -> Optional[ShipTo]:
        self.events.append("update")
        if self.reject_update:
            return None
        requested = ShipTo(country_code=country_code, state_code=state_code)
        if self.apply_update:
            self.destination = requested
        return self.echo or requested

    async def fetch_page(self, url: str) -> PageResponse:
        self.fetched.append(url)
        item = self.pages.pop(0) if self.pages else (200, [])
        if isinstance(item, BaseException):
            raise item
        status, records = item
        self._current = list(records)
        return PageResponse(ok=200 <= status < 300, status=status)

    async def extract_records(self) -> List[WineRecord]:
        return self._current


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_wines(count, start=0, **fields):
    return [
        WineRecord(name=f"Wine {i}", price=10.0 + i, ratings=100 + i, average_rating=3.5, **fields)
        for i in range(start, start + count)
    ]


@pytest.fixture
def client():
    return FakeCatalogClient()


@pytest.fixture
def sleeper():
    return SleepRecorder()
