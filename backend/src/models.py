"""Data models for the bar crawl planner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

BusinessStatus = Literal["OPERATIONAL", "CLOSED_TEMPORARILY", "CLOSED_PERMANENTLY"]
VisitType = Literal["full", "putNameDown", "return"]
CommuteMethod = Literal["walk", "subway", "bus", "taxi"]

VIBES: tuple[str, ...] = ("fancy", "dive", "chill", "wine bar", "dancey", "rooftop")


@dataclass
class GeocodeResult:
    lat: float
    lng: float
    formatted_address: Optional[str] = None


@dataclass(frozen=True)
class Venue:
    place_id: str
    name: str
    vicinity: str
    lat: float
    lng: float
    rating: Optional[float] = None
    price_level: Optional[int] = None  # 1-4
    business_status: str = "OPERATIONAL"
    types: list[str] = field(default_factory=list)
    photos: list[str] = field(default_factory=list)  # photo references
    open_now: Optional[bool] = None
    wait_info: Optional[str] = None


@dataclass
class PlanningPreferences:
    neighborhood: str
    number_of_stops: int = 3
    vibes: list[str] = field(default_factory=list)
    must_go_bar: Optional[str] = None
    day_of_week: Optional[str] = None
    start_time: Optional[str] = None  # "HH:MM", 24h
    end_time: Optional[str] = None
    allow_transit: bool = False
    vetoed_bars: list[str] = field(default_factory=list)  # place ids


@dataclass
class CommuteInfo:
    method: CommuteMethod
    duration: str
    instructions: Optional[str] = None


@dataclass
class CrawlStop:
    venue: Venue
    order: int
    reasoning: str
    estimated_time: str
    visit_type: VisitType = "full"
    commute_to_next: Optional[CommuteInfo] = None


@dataclass
class BarCrawl:
    stops: list[CrawlStop]
    total_estimated_time: str
    overview: str


@dataclass
class VibeRecommendation:
    vibe: str
    venue: Venue
    description: str


@dataclass
class WalkingDistance:
    distance: str
    duration: str
