"""
Base Catalog Client Abstract Class.

This module defines the abstract base class for the session handles used to
talk to the Vivino catalog. Every backend (browser, plain HTTP) inherits from
CatalogClient and implements the primitives the shipping negotiator and the
retrieval engine rely on.

Classes:
    CatalogClient: Abstract base class with the common client interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import BaseModel
from .models import PageResponse, ShipTo, WineRecord


BASE_URL = "https://www.vivino.com"
SEARCH_PATH = "/search/wines?q="
SHIP_TO_PATH = "/api/ship_to/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/83.0.4103.116 Safari/537.36"
)


class CatalogClient(BaseModel, ABC):
    """
    Abstract base class for catalog session handles.

    A client owns exactly one session (a browser page or an HTTP session) and
    is passed explicitly to every operation, so nothing is shared between runs.

    Attributes:
        backend_id: Short identifier of the backend (e.g., "playwright").
        base_url: Root URL of the catalog site.

    Configuration:
        arbitrary_types_allowed: Allows usage of non-Pydantic types in model fields.

    Example:
        >>> async with PlaywrightVivinoClient() as client:
        ...     await client.load_landing()
        ...     destination = await client.current_destination()
    """

    backend_id: str
    base_url: str = BASE_URL

    class Config:
        """Pydantic model configuration."""
        arbitrary_types_allowed = True

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def search_url(self, query: str, index: int) -> str:
        """
        Build the URL of one search results page.

        Args:
            query: Search term.
            index: 1-based page start index.

        Returns:
            Absolute URL of the results page.
        """
        return f"{self.base_url}{SEARCH_PATH}{quote_plus(query)}&start={index}"

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying session. Must be safe to call once per run."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying session. Must be safe to call when open() failed."""

    @abstractmethod
    async def load_landing(self) -> None:
        """Load the site's landing page so session state (cookies, CSRF) is current."""

    @abstractmethod
    async def current_destination(self) -> ShipTo:
        """Return the session's effective shipping destination."""

    @abstractmethod
    async def update_destination(self, country_code: str, state_code: str) -> Optional[ShipTo]:
        """
        Ask the service to change the shipping destination.

        Args:
            country_code: Requested country.
            state_code: Requested state.

        Returns:
            The destination echoed back by the service, or None if the call failed.
        """

    @abstractmethod
    async def fetch_page(self, url: str) -> PageResponse:
        """
        Load a page and report its HTTP outcome.

        Must return the real status for non-2xx responses instead of raising,
        so the caller can tell rate limiting (429) apart from other failures.
        """

    @abstractmethod
    async def extract_records(self) -> List[WineRecord]:
        """Run the record extractor against the most recently fetched page."""
