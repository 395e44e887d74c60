from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from models import Venue

MIN_RATING = 3.5

EXCLUDED_KEYWORDS: tuple[str, ...] = (
    "strip",
    "adult",
    "gentlemen",
    "topless",
    "exotic",
    "lingerie",
    "massage parlor",
    "escort",
    "xxx",
    "nude",
    "dancers",
    "cabaret",
)

RESTAURANT_TYPES = frozenset({"restaurant", "meal_takeaway", "meal_delivery", "food", "cafe", "bakery"})
BAR_TYPES = frozenset({"bar", "liquor_store", "night_club"})

# Sample data for a handful of NYC neighborhoods: requested area -> keywords that
# mark a result as belonging somewhere else.
NEIGHBORHOOD_EXCLUSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "east village": (
        "midtown", "chelsea", "upper east", "upper west", "west village",
        "tribeca", "financial district", "hell's kitchen", "williamsburg", "brooklyn",
    ),
    "west village": (
        "midtown", "east village", "lower east side", "upper east", "upper west",
        "financial district", "williamsburg", "brooklyn",
    ),
    "lower east side": (
        "midtown", "chelsea", "west village", "upper east", "upper west",
        "hell's kitchen", "williamsburg",
    ),
    "chelsea": (
        "east village", "lower east side", "upper east", "upper west",
        "financial district", "williamsburg", "brooklyn",
    ),
    "midtown": (
        "east village", "west village", "lower east side", "soho",
        "tribeca", "williamsburg", "brooklyn",
    ),
    "williamsburg": (
        "manhattan", "midtown", "east village", "west village", "chelsea",
        "bushwick", "greenpoint",
    ),
})


def _has_bar_type(venue: Venue) -> bool:
    return any(t in BAR_TYPES for t in venue.types)


def _is_restaurant(venue: Venue) -> bool:
    return any(t in RESTAURANT_TYPES for t in venue.types)


def _name_is_excluded(name: str) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in EXCLUDED_KEYWORDS)


def filter_adult_venues(venues: Iterable[Venue], min_rating: float = MIN_RATING) -> List[Venue]:
    """Keep operational, well-rated bars; drop adult venues and plain restaurants.

    A restaurant/cafe/bakery-type venue survives only if it also carries a
    bar, liquor store or night club tag.
    """
    kept: list[Venue] = []
    for venue in venues:
        if venue.business_status != "OPERATIONAL":
            continue
        if venue.rating is None or venue.rating < min_rating:
            continue
        if _name_is_excluded(venue.name):
            continue
        if _is_restaurant(venue) and not _has_bar_type(venue):
            continue
        kept.append(venue)
    return kept


def exclusion_keywords(neighborhood: Optional[str]) -> tuple[str, ...]:
    key = (neighborhood or "").strip().casefold()
    if key in NEIGHBORHOOD_EXCLUSIONS:
        return NEIGHBORHOOD_EXCLUSIONS[key]
    head = key.split(",", 1)[0].strip()
    return NEIGHBORHOOD_EXCLUSIONS.get(head, ())


def filter_by_neighborhood(venues: List[Venue], neighborhood: Optional[str]) -> List[Venue]:
    """Drop venues whose address or name mentions a different neighborhood.

    Unknown neighborhoods return the input unchanged.
    """
    keywords = exclusion_keywords(neighborhood)
    if not keywords:
        return list(venues)
    kept: list[Venue] = []
    for venue in venues:
        text = f"{venue.vicinity} {venue.name}".casefold()
        if any(kw in text for kw in keywords):
            continue
        kept.append(venue)
    return kept


def drop_vetoed(venues: List[Venue], vetoed: Iterable[str]) -> List[Venue]:
    blocked = set(vetoed or ())
    if not blocked:
        return list(venues)
    return [v for v in venues if v.place_id not in blocked]


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive substring match in either direction."""
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    if not left or not right:
        return False
    return left in right or right in left
