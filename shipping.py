# shipping.py
import logging

from models.base_client import CatalogClient
from models.models import ShipToError

logger = logging.getLogger(__name__)


async def destination_matches(client: CatalogClient, country_code: str, state_code: str) -> bool:
    """check whether the session already ships to the requested destination"""
    current = await client.current_destination()
    logger.info(
        "Current Ship To: %s/%s (requested %s/%s)",
        current.country_code, current.state_code, country_code, state_code,
    )
    return current.matches(country_code, state_code)


async def set_destination(client: CatalogClient, country_code: str, state_code: str) -> bool:
    """change the destination; true only if the service echoes back what was asked"""
    echoed = await client.update_destination(country_code, state_code)
    if echoed is None:
        return False
    return echoed.matches(country_code, state_code)


async def ensure_destination(client: CatalogClient, country_code: str, state_code: str) -> None:
    """
    Make sure search results will be priced for the requested destination.

    Runs once per run and is never retried. Raises ShipToError when the
    destination can't be set, or is still wrong after setting it.
    """
    await client.load_landing()
    if await destination_matches(client, country_code, state_code):
        return

    logger.info("Setting Ship To location to %s/%s", country_code, state_code)
    if not await set_destination(client, country_code, state_code):
        raise ShipToError('"Ship To" location could not be set')

    await client.load_landing()
    if not await destination_matches(client, country_code, state_code):
        raise ShipToError('"Ship To" location could not be confirmed')

    logger.info("Ship To location confirmed")
