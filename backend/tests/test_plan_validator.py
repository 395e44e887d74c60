from __future__ import annotations

import json

import pytest

from models import PlanningPreferences
from services.plan_validator import (
    ConsecutiveVenueError,
    MustIncludeMissingError,
    PlanValidationError,
    ResponseShapeError,
    UniqueVenueCountError,
    UnknownVenueIndexError,
    build_crawl,
    parse_candidate_plan,
    parse_llm_json,
    validate_plan,
)


def _payload(indices, visit_types=None, **extra):
    visit_types = visit_types or ["full"] * len(indices)
    stops = [
        {
            "barIndex": idx,
            "order": pos,
            "reasoning": f"stop {pos}",
            "estimatedTime": "9:00-10:00 PM",
            "visitType": vt,
        }
        for pos, (idx, vt) in enumerate(zip(indices, visit_types), start=1)
    ]
    crawl = {"stops": stops, "totalEstimatedTime": "3 hours", "overview": "A fun night"}
    crawl.update(extra)
    return {"crawl": crawl}


@pytest.fixture
def venues(make_venue):
    return [make_venue("PDT NYC"), make_venue("Death & Co"), make_venue("Mona's"), make_venue("Ace Bar")]


def test_parse_plain_json() -> None:
    assert parse_llm_json('{"a": 1}') == {"a": 1}


def test_parse_fenced_json() -> None:
    text = '```json\n{"crawl": {"stops": []}}\n```'
    assert parse_llm_json(text) == {"crawl": {"stops": []}}


def test_parse_json_with_chatter_and_think_block() -> None:
    text = '<think>planning...</think>Here you go:\n{"ok": true}\nEnjoy!'
    assert parse_llm_json(text) == {"ok": True}


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "{broken"])
def test_parse_rejects_non_objects(text: str) -> None:
    with pytest.raises(ResponseShapeError):
        parse_llm_json(text)


def test_repeated_venue_scenario(venues) -> None:
    prefs = PlanningPreferences(neighborhood="East Village", number_of_stops=3)
    plan = parse_candidate_plan(_payload([0, 1, 0], ["full", "full", "full"]))
    with pytest.raises(UniqueVenueCountError, match="expected 3 unique venues, got 2"):
        validate_plan(plan, venues, prefs)


def test_must_go_substring_scenario(venues) -> None:
    prefs = PlanningPreferences(neighborhood="East Village", number_of_stops=2, must_go_bar="PDT")
    plan = parse_candidate_plan(_payload([0, 1]))
    validate_plan(plan, venues, prefs)


def test_rejects_out_of_range_index(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2)
    with pytest.raises(UnknownVenueIndexError):
        validate_plan(parse_candidate_plan(_payload([0, 4])), venues, prefs)
    with pytest.raises(UnknownVenueIndexError):
        validate_plan(parse_candidate_plan(_payload([-1, 0])), venues, prefs)


def test_rejects_adjacent_repeat(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2)
    plan = parse_candidate_plan(_payload([0, 0, 1], ["putNameDown", "return", "full"]))
    with pytest.raises(ConsecutiveVenueError):
        validate_plan(plan, venues, prefs)


def test_put_name_down_and_return_is_valid(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2)
    plan = parse_candidate_plan(_payload([2, 1, 2], ["putNameDown", "full", "return"]))
    validate_plan(plan, venues, prefs)
    crawl = build_crawl(plan, venues)
    assert [s.venue.name for s in crawl.stops] == ["Mona's", "Death & Co", "Mona's"]
    assert [s.visit_type for s in crawl.stops] == ["putNameDown", "full", "return"]
    assert crawl.total_estimated_time == "3 hours"
    assert crawl.overview == "A fun night"


def test_adjacency_uses_order_not_list_position(venues) -> None:
    payload = _payload([0, 1, 0])
    # swap orders so that the two visits to venue 0 become adjacent
    payload["crawl"]["stops"][1]["order"] = 3
    payload["crawl"]["stops"][2]["order"] = 2
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2)
    with pytest.raises(ConsecutiveVenueError):
        validate_plan(parse_candidate_plan(payload), venues, prefs)


def test_rejects_missing_must_go(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2, must_go_bar="pdt")
    with pytest.raises(MustIncludeMissingError):
        validate_plan(parse_candidate_plan(_payload([1, 2])), venues, prefs)


def test_must_go_absent_from_candidates_is_not_enforced(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=2, must_go_bar="Attaboy")
    validate_plan(parse_candidate_plan(_payload([1, 2])), venues, prefs)


def test_index_check_runs_before_count_check(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=5)
    with pytest.raises(UnknownVenueIndexError):
        validate_plan(parse_candidate_plan(_payload([0, 9])), venues, prefs)


def test_all_errors_share_a_base(venues) -> None:
    prefs = PlanningPreferences(neighborhood="x", number_of_stops=1)
    with pytest.raises(PlanValidationError):
        validate_plan(parse_candidate_plan(_payload([0, 1])), venues, prefs)


def test_commute_is_parsed_and_normalised() -> None:
    payload = _payload([0, 1])
    payload["crawl"]["stops"][0]["commuteToNext"] = {"method": "Walk", "duration": "5 min", "instructions": "Go east"}
    plan = parse_candidate_plan(payload)
    assert plan.stops[0].commute is not None
    assert plan.stops[0].commute.method == "walk"
    assert plan.stops[0].commute.instructions == "Go east"
    assert plan.stops[1].commute is None


@pytest.mark.parametrize(
    "method, expected",
    [("walking", "walk"), ("On Foot", "walk"), ("train", "subway"), ("Metro", "subway"), ("cab", "taxi")],
)
def test_commute_synonyms_are_mapped(method: str, expected: str) -> None:
    payload = _payload([0, 1])
    payload["crawl"]["stops"][0]["commuteToNext"] = {"method": method, "duration": "6 min"}
    plan = parse_candidate_plan(payload)
    assert plan.stops[0].commute.method == expected
    assert plan.stops[0].commute.duration == "6 min"


def test_unknown_commute_method_drops_only_the_leg() -> None:
    payload = _payload([0, 1])
    payload["crawl"]["stops"][0]["commuteToNext"] = {"method": "jetpack", "duration": "1 min"}
    plan = parse_candidate_plan(payload)
    assert plan.stops[0].commute is None
    assert [s.bar_index for s in plan.stops] == [0, 1]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"crawl": {}},
        {"crawl": {"stops": []}},
        {"crawl": {"stops": [{"order": 1}]}},
        {"crawl": {"stops": [{"barIndex": "first"}]}},
        {"crawl": {"stops": [{"barIndex": True}]}},
        {"crawl": {"stops": [{"barIndex": 0, "visitType": "nap"}]}},
    ],
)
def test_shape_errors(payload) -> None:
    with pytest.raises(ResponseShapeError):
        parse_candidate_plan(payload)


def test_string_indices_are_accepted() -> None:
    plan = parse_candidate_plan(json.loads('{"crawl": {"stops": [{"barIndex": "2", "order": "1"}]}}'))
    assert plan.stops[0].bar_index == 2
    assert plan.stops[0].order == 1
    assert plan.stops[0].visit_type == "full"
