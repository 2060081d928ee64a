import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from filters import filter_wines
from models.base_client import CatalogClient
from models.models import (
    LoopState,
    RetryState,
    RunDone,
    RunException,
    RunHttpError,
    RunResult,
    SearchRequest,
    WineRecord,
)
from shipping import ensure_destination

# -----------------------------------------------------------------------------
# Retry configuration
# -----------------------------------------------------------------------------
MAX_RETRIES = 5
PAUSE_MULTIPLIER = 15  # seconds per accumulated 429
RATE_LIMITED_STATUS = 429

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


# -----------------------------------------------------------------------------
# Page-by-page retrieval
# -----------------------------------------------------------------------------
class PaginatedRetriever:
    """
    Walks the search result pages of one run until an empty page.

    Records are appended to ``vinos`` as each page comes in, so whatever was
    collected before a failure is still available to the caller.

    Only 429 responses are retried, up to MAX_RETRIES times in a row for the
    same page. The wait grows linearly with the total number of 429s seen in
    the run: the retry counter resets when a page succeeds, the backoff
    multiplier does not.
    """

    def __init__(self, client: CatalogClient, request: SearchRequest, sleep: Sleep = asyncio.sleep,
                 vinos: Optional[List[WineRecord]] = None):
        self.client = client
        self.request = request
        self.sleep = sleep
        self.vinos: List[WineRecord] = vinos if vinos is not None else []
        self.retry = RetryState()
        self.state = LoopState.FETCHING

    def _transition(self, state: LoopState) -> None:
        logger.debug("Page %d: %s -> %s", self.retry.page_index, self.state.value, state.value)
        self.state = state

    async def collect(self) -> RunResult:
        """Fetch pages until the results run out or a non-retryable response arrives."""
        retry = self.retry

        while True:
            self._transition(LoopState.FETCHING)
            url = self.client.search_url(self.request.query, retry.page_index)
            response = await self.client.fetch_page(url)

            if response.ok:
                page_items = await self.client.extract_records()
                if not page_items:
                    self._transition(LoopState.DONE)
                    logger.info("No more wines after page %d", retry.page_index)
                    return RunDone(vinos=self.vinos)

                logger.info("Collected %d wines from page %d", len(page_items), retry.page_index)
                self.vinos.extend(page_items)
                self._transition(LoopState.ADVANCING)
                retry.page_index += 1
                retry.retry_count = 0

            elif response.status == RATE_LIMITED_STATUS and retry.retry_count < MAX_RETRIES:
                self._transition(LoopState.RATE_LIMITED)
                retry.retry_count += 1
                retry.pause += 1
                wait_time = retry.pause * PAUSE_MULTIPLIER
                logger.warning(
                    "Hit rate limit, waiting %ds (Retry %d/%d)",
                    wait_time, retry.retry_count, MAX_RETRIES,
                )
                await self.sleep(wait_time)

            else:
                self._transition(LoopState.HTTP_ERROR)
                logger.error("Page %d failed with HTTP %d", retry.page_index, response.status)
                return RunHttpError(
                    vinos=self.vinos,
                    http_status=response.status,
                    page_index=retry.page_index,
                    message=f"Request failed with status {response.status}",
                )


# -----------------------------------------------------------------------------
# One complete run
# -----------------------------------------------------------------------------
async def run_search(client: CatalogClient, request: SearchRequest, sleep: Sleep = asyncio.sleep,
                     vinos: Optional[List[WineRecord]] = None) -> RunResult:
    """
    Open the client, negotiate the destination and collect every page.

    Every failure ends up in the returned result; nothing is raised. The
    client is opened here but not closed: the caller closes it after the
    result has been saved.

    Args:
        client: Catalog session handle, not yet opened.
        request: What to search for and how to filter it.
        sleep: Awaitable sleep used for rate-limit backoff.
        vinos: Optional accumulator; records are appended to it as pages
            arrive, so the caller still has them if the run is interrupted.

    Returns:
        RunDone (filtered), RunHttpError or RunException. The latter two carry
        the unfiltered records collected before the failure.
    """
    retriever = PaginatedRetriever(client, request, sleep=sleep, vinos=vinos)

    try:
        await client.open()
        await ensure_destination(client, request.country_code, request.state_code)
        result = await retriever.collect()
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.error("Run failed: %s", message)
        retriever.state = LoopState.EXCEPTION
        return RunException(vinos=retriever.vinos, message=message)

    if isinstance(result, RunDone):
        result = RunDone(vinos=filter_wines(result.vinos, request))
        logger.info("%d wines left after filtering", len(result.vinos))

    return result
