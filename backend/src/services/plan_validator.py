"""Parse the model's crawl JSON and enforce the plan invariants.

Checks run in a fixed order and the first failure rejects the whole plan:
index validity, unique venue count, no back-to-back repeats, must-include.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from loguru import logger

from models import BarCrawl, CommuteInfo, CrawlStop, PlanningPreferences, Venue
from services.venue_filter import names_match
from utils import strip_code_fence, strip_thinking_tokens

VISIT_TYPES = {"full": "full", "putnamedown": "putNameDown", "return": "return"}
COMMUTE_METHODS = {
    "walk": "walk",
    "walking": "walk",
    "on foot": "walk",
    "subway": "subway",
    "train": "subway",
    "metro": "subway",
    "bus": "bus",
    "taxi": "taxi",
    "cab": "taxi",
    "uber": "taxi",
    "rideshare": "taxi",
}


class ResponseShapeError(RuntimeError):
    """The model reply is not JSON or lacks the expected fields."""


class PlanValidationError(RuntimeError):
    """A parsed plan breaks one of the crawl invariants."""


class UnknownVenueIndexError(PlanValidationError):
    pass


class UniqueVenueCountError(PlanValidationError):
    pass


class ConsecutiveVenueError(PlanValidationError):
    pass


class MustIncludeMissingError(PlanValidationError):
    pass


@dataclass
class CandidateStop:
    bar_index: int
    order: int
    reasoning: str = ""
    estimated_time: str = ""
    visit_type: str = "full"
    commute: Optional[CommuteInfo] = None


@dataclass
class CandidatePlan:
    stops: List[CandidateStop]
    total_estimated_time: str = ""
    overview: str = ""


def parse_llm_json(text: str) -> dict:
    cleaned = strip_code_fence(strip_thinking_tokens(text or ""))
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        s, e = cleaned.find("{"), cleaned.rfind("}")
        if s == -1 or e <= s:
            raise ResponseShapeError("language model reply is not JSON")
        try:
            data = json.loads(cleaned[s : e + 1])
        except json.JSONDecodeError as exc:
            raise ResponseShapeError(f"language model reply is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseShapeError("language model reply is not a JSON object")
    return data


def as_int(value: Any, field: str) -> int:
    # bools are ints in Python; reject them explicitly
    if isinstance(value, bool):
        raise ResponseShapeError(f"{field} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ResponseShapeError(f"{field} must be an integer, got {value!r}")


def _parse_commute(raw: Any) -> Optional[CommuteInfo]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ResponseShapeError("commuteToNext must be an object")
    method = COMMUTE_METHODS.get(str(raw.get("method") or "").strip().lower())
    if method is None:
        # unknown method: drop the leg, keep the stop
        logger.warning("dropping commuteToNext with unknown method {!r}", raw.get("method"))
        return None
    return CommuteInfo(
        method=method,  # type: ignore[arg-type]
        duration=str(raw.get("duration") or ""),
        instructions=(str(raw["instructions"]) if raw.get("instructions") else None),
    )


def parse_candidate_plan(payload: dict) -> CandidatePlan:
    crawl = payload.get("crawl") if isinstance(payload, dict) else None
    if not isinstance(crawl, dict):
        raise ResponseShapeError("missing 'crawl' object")
    raw_stops = crawl.get("stops")
    if not isinstance(raw_stops, list) or not raw_stops:
        raise ResponseShapeError("missing 'crawl.stops' list")

    stops: list[CandidateStop] = []
    for pos, raw in enumerate(raw_stops, start=1):
        if not isinstance(raw, dict):
            raise ResponseShapeError(f"stop {pos} is not an object")
        if "barIndex" not in raw:
            raise ResponseShapeError(f"stop {pos} has no barIndex")
        visit_raw = str(raw.get("visitType") or "full").strip()
        visit_type = VISIT_TYPES.get(visit_raw.lower())
        if visit_type is None:
            raise ResponseShapeError(f"unknown visitType {visit_raw!r}")
        stops.append(
            CandidateStop(
                bar_index=as_int(raw["barIndex"], "barIndex"),
                order=as_int(raw.get("order", pos), "order"),
                reasoning=str(raw.get("reasoning") or ""),
                estimated_time=str(raw.get("estimatedTime") or ""),
                visit_type=visit_type,
                commute=_parse_commute(raw.get("commuteToNext")),
            )
        )

    stops.sort(key=lambda s: s.order)
    return CandidatePlan(
        stops=stops,
        total_estimated_time=str(crawl.get("totalEstimatedTime") or ""),
        overview=str(crawl.get("overview") or ""),
    )


def must_include_available(venues: List[Venue], must_go_bar: Optional[str]) -> bool:
    return any(names_match(v.name, must_go_bar) for v in venues)


def validate_plan(plan: CandidatePlan, venues: List[Venue], prefs: PlanningPreferences) -> None:
    indices = [s.bar_index for s in plan.stops]

    for idx in indices:
        if idx < 0 or idx >= len(venues):
            raise UnknownVenueIndexError(
                f"stop references venue index {idx}, but only {len(venues)} venues are available"
            )

    unique = len(set(indices))
    if unique != prefs.number_of_stops:
        raise UniqueVenueCountError(f"expected {prefs.number_of_stops} unique venues, got {unique}")

    for prev, cur in zip(plan.stops, plan.stops[1:]):
        if prev.bar_index == cur.bar_index:
            raise ConsecutiveVenueError(
                f"stops {prev.order} and {cur.order} both visit {venues[cur.bar_index].name!r}"
            )

    must = (prefs.must_go_bar or "").strip()
    # Only enforceable when the bar made it into the candidate list.
    if must and must_include_available(venues, must):
        if not any(names_match(venues[i].name, must) for i in indices):
            raise MustIncludeMissingError(f"plan does not include must-go bar {must!r}")


def build_crawl(plan: CandidatePlan, venues: List[Venue]) -> BarCrawl:
    stops = [
        CrawlStop(
            venue=venues[s.bar_index],
            order=s.order,
            reasoning=s.reasoning,
            estimated_time=s.estimated_time,
            visit_type=s.visit_type,  # type: ignore[arg-type]
            commute_to_next=s.commute,
        )
        for s in plan.stops
    ]
    return BarCrawl(stops=stops, total_estimated_time=plan.total_estimated_time, overview=plan.overview)
