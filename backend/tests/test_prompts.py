from __future__ import annotations

import pytest

from models import PlanningPreferences
from services.prompts import (
    DAY_OF_WEEK_NOTES,
    build_crawl_prompt,
    build_vibe_prompt,
    format_12h,
    format_price,
)
from services.wait_times import WAIT_LONG, WAIT_UNAVAILABLE


@pytest.mark.parametrize(
    "value, expected",
    [
        ("21:00", "9:00 PM"),
        ("01:00", "1:00 AM"),
        ("00:30", "12:30 AM"),
        ("12:15", "12:15 PM"),
        ("9", "9:00 AM"),
        ("late", "late"),
        ("25:00", "25:00"),
    ],
)
def test_format_12h(value: str, expected: str) -> None:
    assert format_12h(value) == expected


def test_format_price() -> None:
    assert format_price(3) == "$$$"
    assert format_price(None) == "N/A"
    assert format_price(0) == "N/A"


def test_crawl_prompt_embeds_preferences_and_venues(make_venue) -> None:
    prefs = PlanningPreferences(
        neighborhood="East Village",
        number_of_stops=3,
        vibes=["dive", "rooftop"],
        day_of_week="Friday",
        start_time="21:00",
        end_time="01:00",
    )
    venues = [
        make_venue("Mona's", rating=4.3, price_level=1, vicinity="224 Ave B", wait_info=WAIT_LONG),
        make_venue("Rooftop 9", rating=None, price_level=None, wait_info=WAIT_UNAVAILABLE),
    ]
    prompt = build_crawl_prompt(prefs, venues)

    assert "NEIGHBORHOOD: East Village" in prompt
    assert "NUMBER OF BARS: 3" in prompt
    assert "PREFERRED VIBES: dive, rooftop" in prompt
    assert DAY_OF_WEEK_NOTES["friday"] in prompt
    assert "TIME WINDOW: 9:00 PM to 1:00 AM" in prompt
    assert "Walking only" in prompt
    assert "0. Mona's - Rating: 4.3, Price: $, Address: 224 Ave B, Wait: Long waits common" in prompt
    assert "1. Rooftop 9 - Rating: N/A, Price: N/A" in prompt
    assert WAIT_UNAVAILABLE not in prompt
    assert "exactly 3 unique barIndex values" in prompt
    assert "MUST INCLUDE" not in prompt


def test_crawl_prompt_must_go_is_repeated(make_venue) -> None:
    prefs = PlanningPreferences(neighborhood="West Village", number_of_stops=2, must_go_bar="PDT", allow_transit=True)
    prompt = build_crawl_prompt(prefs, [make_venue("PDT NYC")])
    assert "MUST INCLUDE: PDT" in prompt
    assert prompt.count('"PDT"') >= 3
    assert "subway" in prompt
    assert 'Every commuteToNext.method must be "walk"' not in prompt


def test_crawl_prompt_is_deterministic(make_venue) -> None:
    prefs = PlanningPreferences(neighborhood="Chelsea", number_of_stops=2, vibes=["chill"])
    venues = [make_venue("A", place_id="a"), make_venue("B", place_id="b")]
    assert build_crawl_prompt(prefs, venues) == build_crawl_prompt(prefs, venues)


def test_unknown_day_has_no_notes(make_venue) -> None:
    prefs = PlanningPreferences(neighborhood="Chelsea", day_of_week="Someday")
    prompt = build_crawl_prompt(prefs, [make_venue("A")])
    assert "DAY: Someday" in prompt
    assert "DAY NOTES" not in prompt


def test_vibe_prompt_lists_vibes_and_locations(make_venue) -> None:
    prompt = build_vibe_prompt([make_venue("Mona's", vicinity="224 Ave B")])
    assert "fancy, dive, chill, wine bar, dancey, rooftop" in prompt
    assert "0. Mona's - Rating: 4.2, Price: $$, Location: 224 Ave B" in prompt
    assert '"recommendations"' in prompt
