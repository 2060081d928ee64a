"""
Numeric range filters applied to the collected wines.

A min bound drops records whose field is missing. A max bound keeps them,
since a missing value is never "greater than" the bound. That is probably not
what a user expects from --max-price; see DESIGN.md before changing it.
"""

from typing import List, Optional

from models.models import SearchRequest, WineRecord


def _passes(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    if low is not None and (value is None or value < low):
        return False
    if high is not None and value is not None and value > high:
        return False
    return True


def filter_wines(vinos: List[WineRecord], request: SearchRequest) -> List[WineRecord]:
    """Return the records that satisfy every bound set on the request, in their original order."""
    return [
        wine for wine in vinos
        if _passes(wine.price, request.min_price, request.max_price)
        and _passes(wine.ratings, request.min_ratings, request.max_ratings)
        and _passes(wine.average_rating, request.min_average, request.max_average)
    ]
