from __future__ import annotations

from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote, urlencode

from models import BarCrawl, PlanningPreferences
from services.prompts import format_12h, format_price
from services.wait_times import WAIT_UNAVAILABLE

VIBE_EMOJI: Mapping[str, str] = MappingProxyType({
    "fancy": "🍸",
    "dive": "🍺",
    "chill": "😎",
    "wine bar": "🍷",
    "dancey": "💃",
    "rooftop": "🏙️",
})

COMMUTE_ICON: Mapping[str, str] = MappingProxyType({
    "walk": "🚶",
    "subway": "🚇",
    "bus": "🚌",
    "taxi": "🚕",
})

VISIT_LABEL: Mapping[str, str] = MappingProxyType({
    "putNameDown": "Put Name Down",
    "return": "Return Visit",
})


def vibe_emoji(vibe: str) -> str:
    return VIBE_EMOJI.get((vibe or "").lower(), "🍻")


def place_maps_url(place_id: str) -> str:
    return f"https://www.google.com/maps/place/?q=place_id:{quote(place_id)}"


def crawl_directions_url(crawl: BarCrawl, *, allow_transit: bool = False) -> str:
    waypoints = "|".join(f"{s.venue.name}, {s.venue.vicinity}" for s in crawl.stops)
    params = {
        "api": "1",
        "waypoints": waypoints,
        "travelmode": "transit" if allow_transit else "walking",
    }
    return "https://www.google.com/maps/dir/?" + urlencode(params)


def build_crawl_report(prefs: PlanningPreferences, crawl: BarCrawl) -> str:
    vibes = " ".join(f"{vibe_emoji(v)} {v}" for v in prefs.vibes) or "Any"
    window = " - ".join(filter(None, [format_12h(prefs.start_time), format_12h(prefs.end_time)]))
    unique = len({s.venue.place_id for s in crawl.stops})
    lines = [
        f"## Bar Crawl: {prefs.neighborhood}",
        "",
        f"- Bars: {unique} ({len(crawl.stops)} stops)",
        f"- Vibes: {vibes}",
        f"- Day: {prefs.day_of_week or 'Not specified'}",
        f"- Time: {window or 'Not specified'}",
        f"- Getting around: {'Walking + transit' if prefs.allow_transit else 'Walking only'}",
        f"- Total time: {crawl.total_estimated_time or 'Not specified'}",
        "",
    ]
    if crawl.overview:
        lines += [crawl.overview, ""]

    for s in crawl.stops:
        v = s.venue
        title = f"### {s.order}. {v.name}"
        label = VISIT_LABEL.get(s.visit_type)
        if label:
            title += f" ({label})"
        lines += [
            title,
            f"- Address: {v.vicinity or 'Not provided'}",
            f"- Rating: {v.rating if v.rating is not None else 'No rating'} | Price: {format_price(v.price_level)}",
            f"- When: {s.estimated_time or 'Flexible'}",
        ]
        if v.wait_info and v.wait_info != WAIT_UNAVAILABLE:
            lines.append(f"- Wait: ⏱️ {v.wait_info}")
        if s.reasoning:
            lines.append(f"- Why: {s.reasoning}")
        if s.commute_to_next:
            c = s.commute_to_next
            hop = f"- Next: {COMMUTE_ICON.get(c.method, '🚶')} {c.method} {c.duration}".rstrip()
            if c.instructions:
                hop += f" ({c.instructions})"
            lines.append(hop)
        lines += [f"- Map: {place_maps_url(v.place_id)}", ""]

    return "\n".join(lines).rstrip() + "\n"
