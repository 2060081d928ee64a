"""
Data Models for Vivino Scout.

This module defines the Pydantic models used throughout Vivino Scout for type
safety and data validation, plus the exceptions raised by catalog clients.

Classes:
    SearchRequest: Immutable search input with optional numeric filter bounds.
    WineRecord: One wine card extracted from a search results page.
    ShipTo: A shipping destination (country + state).
    PageResponse: Outcome of a single page fetch.
    RunDone, RunHttpError, RunException: Terminal run outcomes.
    RetryState: Page index and rate-limit accounting for a single run.
"""

import enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class CatalogError(Exception):
    """Raised when the catalog service cannot be used as expected."""


class ShipToError(CatalogError):
    """Raised when the "Ship To" destination cannot be set or confirmed."""


class LoopState(str, enum.Enum):
    FETCHING = "FETCHING"
    RATE_LIMITED = "RATE_LIMITED"
    ADVANCING = "ADVANCING"
    DONE = "DONE"
    HTTP_ERROR = "HTTP_ERROR"
    EXCEPTION = "EXCEPTION"


Bound = Annotated[Optional[float], Field(ge=0, allow_inf_nan=False)]


class SearchRequest(BaseModel):
    """
    Data model for a single search run.

    Attributes:
        query: Search term sent to the catalog.
        country_code: Destination country (default "US").
        state_code: Destination state. Defaults to "CA" when the country is US
            and no state was given.
        min_price, max_price: Optional price bounds.
        min_ratings, max_ratings: Optional rating-count bounds.
        min_average, max_average: Optional average-rating bounds.

    Note:
        min <= max is not checked; inverted bounds simply filter everything out.

    Example:
        >>> req = SearchRequest(query="barolo", min_price=20)
        >>> req.state_code
        'CA'
    """

    query: str
    country_code: str = "US"
    state_code: str = ""
    min_price: Bound = None
    max_price: Bound = None
    min_ratings: Bound = None
    max_ratings: Bound = None
    min_average: Bound = None
    max_average: Bound = None

    class Config:
        frozen = True

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query must not be empty")
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_state(cls, data):
        if isinstance(data, dict):
            country = data.get("country_code") or "US"
            state = data.get("state_code") or ""
            if isinstance(country, str) and country.lower() == "us" and state == "":
                state = "CA"
            data = {**data, "country_code": country, "state_code": state}
        return data


class WineRecord(BaseModel):
    """One wine card from a search results page, in the order the site listed it."""

    name: Optional[str] = None
    link: Optional[str] = None
    thumb: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    average_rating: Optional[float] = Field(default=None, ge=0)
    ratings: int = Field(default=0, ge=0)
    price: Optional[float] = Field(default=None, ge=0)

    class Config:
        frozen = True


class ShipTo(BaseModel):
    country_code: str = ""
    state_code: str = ""

    def matches(self, country_code: str, state_code: str) -> bool:
        """Case-insensitive comparison against a requested destination."""
        return (
            self.country_code.lower() == country_code.lower()
            and self.state_code.lower() == state_code.lower()
        )


class PageResponse(BaseModel):
    ok: bool
    status: int


class RunDone(BaseModel):
    vinos: List[WineRecord] = Field(default_factory=list)
    status: Literal["DONE"] = "DONE"


class RunHttpError(BaseModel):
    vinos: List[WineRecord] = Field(default_factory=list)
    status: Literal["HTTP_ERROR"] = "HTTP_ERROR"
    http_status: int
    page_index: int
    message: str


class RunException(BaseModel):
    vinos: List[WineRecord] = Field(default_factory=list)
    status: Literal["EXCEPTION"] = "EXCEPTION"
    message: str


RunResult = Annotated[
    Union[RunDone, RunHttpError, RunException],
    Field(discriminator="status"),
]


class RetryState(BaseModel):
    """
    Rate-limit accounting for one run.

    Attributes:
        page_index: 1-based start index of the page being fetched.
        retry_count: Consecutive 429 responses since the last page advance.
        pause: Backoff multiplier. Grows by one per 429 and is never reset
            within a run, so sporadic rate limiting across many pages keeps
            lengthening the wait.
    """

    page_index: int = 1
    retry_count: int = 0
    pause: int = 0
