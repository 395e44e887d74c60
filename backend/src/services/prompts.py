"""Prompt construction for crawl planning and vibe classification.

Everything here is deterministic: the same preferences and venue list always
produce the same text.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping, Optional

from models import VIBES, PlanningPreferences, Venue
from services.wait_times import WAIT_UNAVAILABLE

CRAWL_SYSTEM_PROMPT = "You are a local nightlife expert who creates strategic bar crawl plans."

VIBE_SYSTEM_PROMPT = (
    "You are a helpful assistant that classifies bars into vibes and writes engaging descriptions."
)

DAY_OF_WEEK_NOTES: Mapping[str, str] = MappingProxyType({
    "monday": "Mondays are quiet. Most bars have no lines and some close early; happy hours run long.",
    "tuesday": "Tuesdays are low-key. Expect trivia nights and easy seating almost everywhere.",
    "wednesday": "Wednesdays pick up slightly after 9 PM; popular cocktail bars may have short waits.",
    "thursday": "Thursdays are the unofficial start of the weekend. Popular spots fill up after 10 PM.",
    "friday": "Fridays are busy. Cocktail bars and rooftops get lines by 9 PM, so put names down early.",
    "saturday": "Saturdays are the busiest night. Expect long waits at popular bars after 9 PM and plan "
    "name-down stops strategically.",
    "sunday": "Sundays start early and wind down early. Many bars are quieter after 11 PM.",
})


def format_12h(value: Optional[str]) -> Optional[str]:
    """'21:00' -> '9:00 PM'. Unparseable input is returned unchanged."""
    if not value:
        return value
    parts = value.strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return value
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return value
    meridiem = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:{minute:02d} {meridiem}"


def format_price(level: Optional[int]) -> str:
    return "$" * level if level else "N/A"


def day_notes(day_of_week: Optional[str]) -> Optional[str]:
    if not day_of_week:
        return None
    return DAY_OF_WEEK_NOTES.get(day_of_week.strip().lower())


def venue_lines(venues: List[Venue], *, label: str = "Address") -> str:
    lines: list[str] = []
    for idx, v in enumerate(venues):
        line = (
            f"{idx}. {v.name} - Rating: {v.rating if v.rating is not None else 'N/A'}, "
            f"Price: {format_price(v.price_level)}, {label}: {v.vicinity}"
        )
        if v.wait_info and v.wait_info != WAIT_UNAVAILABLE:
            line += f", Wait: {v.wait_info}"
        lines.append(line)
    return "\n".join(lines)


def _timing_block(prefs: PlanningPreferences) -> list[str]:
    lines: list[str] = []
    if prefs.day_of_week:
        lines.append(f"DAY: {prefs.day_of_week}")
        notes = day_notes(prefs.day_of_week)
        if notes:
            lines.append(f"DAY NOTES: {notes}")
    start = format_12h(prefs.start_time)
    end = format_12h(prefs.end_time)
    if start and end:
        lines.append(f"TIME WINDOW: {start} to {end}")
    elif start:
        lines.append(f"START TIME: {start}")
    elif end:
        lines.append(f"END TIME: {end}")
    return lines


def build_crawl_prompt(prefs: PlanningPreferences, venues: List[Venue]) -> str:
    n = prefs.number_of_stops
    must = (prefs.must_go_bar or "").strip()
    vibes = ", ".join(prefs.vibes) if prefs.vibes else "any"

    header = [
        "You are a local nightlife expert creating the perfect bar crawl.",
        "",
        f"NEIGHBORHOOD: {prefs.neighborhood}",
        f"NUMBER OF BARS: {n}",
        f"PREFERRED VIBES: {vibes}",
    ]
    header.extend(_timing_block(prefs))
    if prefs.allow_transit:
        header.append("TRANSPORTATION: Walking, subway, bus or taxi are all allowed between stops.")
    else:
        header.append("TRANSPORTATION: Walking only. Keep every stop within walking distance.")
    if must:
        header.append(f"MUST INCLUDE: {must}")

    rules = [
        f"Create an optimal bar crawl that visits exactly {n} different bars. Consider:",
        "- Walking distance between venues",
        "- Crowd buildup timing (start quieter, build energy)",
        "- Preferred vibes",
        "- Wait times listed for each bar",
        "- Strategic planning (e.g. put your name down at a busy bar, hit a nearby spot while you wait, "
        "then return)",
        "",
        "RULES:",
        "- Use the exact barIndex number shown in the list above (starting from 0).",
        f"- The plan must reference exactly {n} unique barIndex values.",
        '- visitType is "full" for a normal visit, "putNameDown" for a quick stop to join a waitlist, '
        'and "return" for coming back to a bar where you put your name down.',
        "- A return visit counts as the same bar, not an extra one.",
        "- Never list the same bar in two consecutive stops.",
        '- commuteToNext.method is one of "walk", "subway", "bus", "taxi". Omit it on the last stop.',
    ]
    if not prefs.allow_transit:
        rules.append('- Every commuteToNext.method must be "walk".')
    if must:
        rules += [
            "",
            f'IMPORTANT: You MUST include "{must}" in the crawl.',
            f'"{must}" is the user\'s must-go bar. Find it in the list above and use its barIndex.',
            f'Do not return a plan without "{must}".',
        ]

    shape = """Respond in JSON format:
{
  "crawl": {
    "stops": [
      {
        "barIndex": 0,
        "order": 1,
        "reasoning": "Start here because...",
        "estimatedTime": "8:00-9:30 PM",
        "visitType": "full",
        "commuteToNext": {"method": "walk", "duration": "5 min", "instructions": "Head east on 7th St"}
      }
    ],
    "totalEstimatedTime": "4-5 hours",
    "overview": "A strategic crawl that begins..."
  }
}

Make the reasoning engaging and strategic. Focus on timing, logistics, and vibe progression."""

    return "\n".join(header + ["", "Available bars:", venue_lines(venues), ""] + rules + ["", shape])


def build_vibe_prompt(venues: List[Venue]) -> str:
    vibe_list = ", ".join(VIBES)
    return f"""You are a local bar expert helping classify bars into different vibes. Here are the available vibes: {vibe_list}.

Here are nearby bars:
{venue_lines(venues, label="Location")}

For each vibe category ({vibe_list}), select the ONE best matching bar from the list and provide a short, engaging description (1-2 sentences) that captures why this bar fits that vibe. If no bar clearly fits a vibe, you can skip that vibe.

IMPORTANT: Use the exact barIndex number shown in the list above (starting from 0).

Respond in JSON format like this:
{{
  "recommendations": [
    {{
      "vibe": "fancy",
      "barIndex": 0,
      "description": "An upscale cocktail lounge with craft drinks and elegant ambiance."
    }}
  ]
}}

Focus on unique characteristics that make each bar special for its vibe. Keep descriptions punchy and appealing."""
