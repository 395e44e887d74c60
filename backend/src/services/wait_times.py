from __future__ import annotations

import asyncio
import re
from dataclasses import replace
from typing import Iterable, List, Optional

from loguru import logger

from models import Venue

WAIT_MINIMAL = "Minimal wait"
WAIT_MODERATE = "Moderate wait"
WAIT_LONG = "Long waits common"
WAIT_VERY_CROWDED = "Very crowded"
WAIT_UNAVAILABLE = "Wait info unavailable"

WAIT_KEYWORDS: tuple[str, ...] = ("wait", "line", "busy", "crowded", "packed", "full", "minutes", "hour")

# Checked in order; first hit decides.
_WAIT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern), label)
    for pattern, label in (
        (r"\bno (?:wait|line)\b", WAIT_MINIMAL),
        (r"\bwalked (?:right )?in\b", WAIT_MINIMAL),
        (r"\bseated (?:right away|immediately)\b", WAIT_MINIMAL),
        (r"\bnot (?:too |that |very )?(?:busy|crowded|packed)\b", WAIT_MINIMAL),
        (r"\bnever (?:busy|crowded|packed)\b", WAIT_MINIMAL),
        (r"\bpacked\b", WAIT_VERY_CROWDED),
        (r"\b(?:very|super|extremely|really|insanely) (?:crowded|busy)\b", WAIT_VERY_CROWDED),
        (r"\bshoulder to shoulder\b", WAIT_VERY_CROWDED),
        (r"\bcan'?t move\b", WAIT_VERY_CROWDED),
        (r"\blong (?:wait|line)s?\b", WAIT_LONG),
        (r"(?<!happy )\bhours?\b", WAIT_LONG),
        (r"\b(?:[3-9]\d|\d{3,}) ?min(?:ute)?s?\b", WAIT_LONG),
        # single-digit minutes count only next to "wait"
        (r"\bwait(?:ed)? (?:about |only |just |maybe )?\d ?min(?:ute)?s?\b", WAIT_MINIMAL),
        (r"\b\d ?min(?:ute)?s? wait\b", WAIT_MINIMAL),
        (r"\b[12]\d ?min(?:ute)?s?\b", WAIT_MODERATE),
        (r"\b(?:short|small|some|bit of a) (?:wait|line)\b", WAIT_MODERATE),
        (r"\bbusy\b", WAIT_MODERATE),
        (r"\bcrowded\b", WAIT_MODERATE),
    )
)


def _first_matching_review(reviews: Iterable[str]) -> Optional[str]:
    for review in reviews:
        text = (review or "").lower()
        if any(kw in text for kw in WAIT_KEYWORDS):
            return text
    return None


def classify_wait_time(reviews: Iterable[str]) -> str:
    """Map a venue's reviews to a coarse wait-time label.

    Only the first review mentioning a crowd/wait keyword is inspected; later
    reviews are ignored even if they carry a stronger signal.
    """
    review = _first_matching_review(reviews)
    if review is None:
        return WAIT_UNAVAILABLE
    for pattern, label in _WAIT_PATTERNS:
        if pattern.search(review):
            return label
    return WAIT_UNAVAILABLE


async def enrich_wait_times(client, venues: List[Venue], *, limit: int = 10) -> List[Venue]:
    """Attach wait labels to the first ``limit`` venues.

    Review fetches run concurrently and are joined before returning; results
    are merged back by index. A failed fetch propagates.
    """
    head = venues[: max(limit, 0)]
    if not head:
        return list(venues)

    reviews = await asyncio.gather(
        *(asyncio.to_thread(client.place_reviews, v.place_id) for v in head)
    )
    enriched = list(venues)
    for idx, texts in enumerate(reviews):
        enriched[idx] = replace(enriched[idx], wait_info=classify_wait_time(texts))
    logger.debug("wait times enriched for {} of {} venues", len(head), len(venues))
    return enriched
