"""
Vivino Search Results Extractor.

Maps the wine cards of a rendered search results page to WineRecord objects.
Shared by every client backend so the same markup yields the same records.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from models.models import WineRecord


logger = logging.getLogger(__name__)

CARDS_SELECTOR = ".card.card-lg"
NAME_SELECTOR = ".wine-card__name"
COUNTRY_SELECTOR = '.wine-card__region [data-item-type="country"]'
REGION_SELECTOR = ".wine-card__region .link-color-alt-grey"
AVERAGE_RATING_SELECTOR = ".average__number"
RATINGS_SELECTOR = ".average__stars .text-micro"
PRICE_SELECTOR = ".wine-price-value"
LINK_SELECTOR = "a"
THUMB_SELECTOR = "figure"
THUMB_REGEX = re.compile(r"url\(\s*(['\"]?)(.*?)\1\s*\)")


def numerize(text: Optional[str]) -> Optional[float]:
    """
    Parse a localized number such as "4,2" or "$ 24.99".

    Args:
        text: Raw text from the page, or None when the element is missing.

    Returns:
        The number as float, or None if nothing numeric is left.
    """
    if not text:
        return None
    cleaned = re.sub(r"[^0-9,.]+", "", text).replace(",", ".", 1)
    match = re.match(r"\d*\.?\d+", cleaned)
    if not match:
        return None
    return float(match.group())


def parse_ratings(text: Optional[str]) -> int:
    """Parse "1234 ratings" into 1234. Missing or unreadable counts become 0."""
    if not text:
        return 0
    match = re.match(r"\d+", text.replace("ratings", "").replace(",", "").strip())
    return int(match.group()) if match else 0


def _text(card, selector: str) -> Optional[str]:
    elem = card.select_one(selector)
    return elem.get_text().strip() if elem else None


def _thumb(card) -> Optional[str]:
    figure = card.select_one(THUMB_SELECTOR)
    if not figure:
        return None
    match = THUMB_REGEX.search(figure.get("style", ""))
    if not match:
        return None
    return "https:" + match.group(2)


def extract_wines(html: str, base_url: str) -> List[WineRecord]:
    """
    Extract all wine cards from a search results page.

    Args:
        html: Rendered page HTML.
        base_url: Used to absolutize relative card links.

    Returns:
        Records in page order. An empty list means the page had no results.
    """
    soup = BeautifulSoup(html, "lxml")
    records = []

    for card in soup.select(CARDS_SELECTOR):
        link_elem = card.select_one(LINK_SELECTOR)
        href = link_elem.get("href") if link_elem else None

        records.append(WineRecord(
            name=_text(card, NAME_SELECTOR),
            link=urljoin(base_url, href) if href else None,
            thumb=_thumb(card),
            country=_text(card, COUNTRY_SELECTOR),
            region=_text(card, REGION_SELECTOR),
            average_rating=numerize(_text(card, AVERAGE_RATING_SELECTOR)),
            ratings=parse_ratings(_text(card, RATINGS_SELECTOR)),
            price=numerize(_text(card, PRICE_SELECTOR)),
        ))

    logger.debug("Extracted %d wine cards", len(records))
    return records
