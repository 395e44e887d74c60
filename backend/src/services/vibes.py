from __future__ import annotations

import asyncio
from typing import List

from loguru import logger

from config import Configuration
from models import VIBES, Venue, VibeRecommendation
from services.llm import CompletionFn, complete as default_complete
from services.plan_validator import ResponseShapeError, as_int, parse_llm_json
from services.prompts import VIBE_SYSTEM_PROMPT, build_vibe_prompt


def parse_vibe_recommendations(payload: dict, venues: List[Venue]) -> List[VibeRecommendation]:
    """Keep in-range, known-vibe recommendations, at most one per vibe."""
    items = payload.get("recommendations")
    if not isinstance(items, list):
        raise ResponseShapeError("missing 'recommendations' list")

    out: list[VibeRecommendation] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        vibe = str(item.get("vibe") or "").strip().lower()
        if vibe not in VIBES or vibe in seen:
            continue
        try:
            index = as_int(item.get("barIndex"), "barIndex")
        except ResponseShapeError:
            continue
        if not 0 <= index < len(venues):
            continue
        seen.add(vibe)
        out.append(
            VibeRecommendation(
                vibe=vibe,
                venue=venues[index],
                description=str(item.get("description") or "").strip(),
            )
        )
    return out


async def recommend_vibes(
    cfg: Configuration,
    venues: List[Venue],
    *,
    complete: CompletionFn = default_complete,
) -> List[VibeRecommendation]:
    if not venues:
        raise ValueError("No bars provided")
    raw = await asyncio.to_thread(complete, cfg, VIBE_SYSTEM_PROMPT, build_vibe_prompt(venues))
    recs = parse_vibe_recommendations(parse_llm_json(raw), venues)
    logger.debug("vibe recommendations: {} for {} bars", len(recs), len(venues))
    return recs
