from __future__ import annotations

import asyncio
from typing import List, Optional

from loguru import logger

from config import Configuration
from models import BarCrawl, PlanningPreferences, Venue
from services.google_places import GooglePlacesClient, PlacesError
from services.llm import CompletionFn, complete as default_complete
from services.plan_validator import (
    build_crawl,
    must_include_available,
    parse_candidate_plan,
    parse_llm_json,
    validate_plan,
)
from services.prompts import CRAWL_SYSTEM_PROMPT, build_crawl_prompt
from services.venue_filter import drop_vetoed, filter_adult_venues, filter_by_neighborhood, names_match
from services.wait_times import enrich_wait_times


class PlanningError(RuntimeError):
    pass


def _find_must_go(client: GooglePlacesClient, prefs: PlanningPreferences) -> Optional[Venue]:
    query = f"{prefs.must_go_bar} {prefs.neighborhood}".strip()
    for venue in client.text_search(query):
        if venue.business_status == "OPERATIONAL" and names_match(venue.name, prefs.must_go_bar):
            return venue
    return None


async def gather_venues(
    cfg: Configuration,
    prefs: PlanningPreferences,
    client: GooglePlacesClient,
) -> List[Venue]:
    """Geocode the neighborhood and return the filtered candidate list."""
    location = await asyncio.to_thread(client.geocode, prefs.neighborhood)
    if location is None:
        raise PlacesError("Could not find the specified neighborhood")

    raw = await asyncio.to_thread(
        client.nearby_bars, location.lat, location.lng, radius=cfg.plan_radius_m
    )
    venues = filter_adult_venues(raw, min_rating=cfg.min_rating)
    venues = filter_by_neighborhood(venues, prefs.neighborhood)
    venues = drop_vetoed(venues, prefs.vetoed_bars)
    logger.debug(
        "neighborhood={} raw={} filtered={} vetoed={}",
        prefs.neighborhood,
        len(raw),
        len(venues),
        len(prefs.vetoed_bars),
    )

    must = (prefs.must_go_bar or "").strip()
    if must and not must_include_available(venues, must):
        found = await asyncio.to_thread(_find_must_go, client, prefs)
        if found is not None and found.place_id not in set(prefs.vetoed_bars):
            venues.append(found)
            logger.info("must-go bar {!r} added from text search as {!r}", must, found.name)
        else:
            logger.warning("must-go bar {!r} not found near {}", must, prefs.neighborhood)

    if cfg.wait_times_enabled:
        venues = await enrich_wait_times(client, venues, limit=cfg.wait_time_max_venues)
    return venues


async def plan_crawl(
    cfg: Configuration,
    prefs: PlanningPreferences,
    *,
    client: GooglePlacesClient,
    complete: CompletionFn = default_complete,
) -> BarCrawl:
    if prefs.number_of_stops < 1:
        raise ValueError("numberOfStops must be at least 1")

    venues = await gather_venues(cfg, prefs, client)
    if len(venues) < prefs.number_of_stops:
        raise PlanningError(
            f"only {len(venues)} bars found in {prefs.neighborhood}, need {prefs.number_of_stops}"
        )

    prompt = build_crawl_prompt(prefs, venues)
    raw = await asyncio.to_thread(complete, cfg, CRAWL_SYSTEM_PROMPT, prompt)

    plan = parse_candidate_plan(parse_llm_json(raw))
    validate_plan(plan, venues, prefs)
    crawl = build_crawl(plan, venues)
    logger.info(
        "crawl planned neighborhood={} stops={} unique={}",
        prefs.neighborhood,
        len(crawl.stops),
        len({s.venue.place_id for s in crawl.stops}),
    )
    return crawl
