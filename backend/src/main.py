from __future__ import annotations

import asyncio
from typing import List, Literal, Optional

import requests
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Configuration
from models import BarCrawl, CrawlStop, PlanningPreferences, Venue, VibeRecommendation
from services.google_places import GooglePlacesClient, parse_venue
from services.llm import complete
from services.planner import plan_crawl
from services.report import build_crawl_report, crawl_directions_url
from services.venue_filter import filter_adult_venues
from services.vibes import recommend_vibes

load_dotenv()

app = FastAPI(title="Bar Crawl Planner")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error bodies are always {"error": <message>}; the frontend reads that key.
# Registered on the Starlette base so routing 404/405 responses match too.
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning("HTTP {} {}: {}", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("invalid request {}: {}", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request parameters"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on {}", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Server error"})


@app.get("/favicon.ico")
def favicon() -> Response:
    # Avoid noisy 404 in logs if browser asks for favicon
    return Response(status_code=204)


Vibe = Literal["fancy", "dive", "chill", "wine bar", "dancey", "rooftop"]


class LatLng(BaseModel):
    lat: float
    lng: float


class Geometry(BaseModel):
    location: LatLng


class OpeningHours(BaseModel):
    open_now: Optional[bool] = None


class Photo(BaseModel):
    photo_reference: str


class BarPayload(BaseModel):
    place_id: str
    name: str
    rating: Optional[float] = None
    price_level: Optional[int] = None
    vicinity: str = ""
    business_status: Optional[str] = None
    types: List[str] = []
    geometry: Geometry
    opening_hours: Optional[OpeningHours] = None
    photos: List[Photo] = []
    waitInfo: Optional[str] = None


class VibeBarPayload(BarPayload):
    vibe: str
    description: str


class CommutePayload(BaseModel):
    method: Literal["walk", "subway", "bus", "taxi"]
    duration: str
    instructions: Optional[str] = None


class CrawlStopPayload(BaseModel):
    bar: BarPayload
    order: int
    reasoning: str
    estimatedTime: str
    visitType: Literal["full", "putNameDown", "return"] = "full"
    commuteToNext: Optional[CommutePayload] = None


class BarCrawlPayload(BaseModel):
    stops: List[CrawlStopPayload]
    totalEstimatedTime: str
    overview: str


class PlanRequest(BaseModel):
    neighborhood: str = Field(..., min_length=1, description="Neighborhood to crawl")
    numberOfStops: int = Field(3, ge=1, le=10)
    vibes: List[Vibe] = []
    mustGoBar: Optional[str] = None
    startTime: Optional[str] = Field(None, description="24h HH:MM")
    endTime: Optional[str] = Field(None, description="24h HH:MM")
    dayOfWeek: Optional[str] = None
    allowTransit: bool = False
    vetoedBars: List[str] = Field(default_factory=list, description="place_ids the user rejected")


class PlanResponse(BaseModel):
    crawl: BarCrawlPayload
    directionsUrl: str
    report: str


class NearbyBarsResponse(BaseModel):
    bars: List[BarPayload]


class VibeRecsRequest(BaseModel):
    bars: List[BarPayload] = []


class VibeRecommendationPayload(BaseModel):
    vibe: str
    bar: VibeBarPayload


class VibeRecsResponse(BaseModel):
    recommendations: List[VibeRecommendationPayload]


class WalkingDistanceResponse(BaseModel):
    distance: str
    duration: str


def to_bar_payload(v: Venue) -> BarPayload:
    return BarPayload(
        place_id=v.place_id,
        name=v.name,
        rating=v.rating,
        price_level=v.price_level,
        vicinity=v.vicinity,
        business_status=v.business_status,
        types=list(v.types),
        geometry=Geometry(location=LatLng(lat=v.lat, lng=v.lng)),
        opening_hours=(OpeningHours(open_now=v.open_now) if v.open_now is not None else None),
        photos=[Photo(photo_reference=ref) for ref in v.photos],
        waitInfo=v.wait_info,
    )


def to_stop_payload(s: CrawlStop) -> CrawlStopPayload:
    commute = None
    if s.commute_to_next:
        c = s.commute_to_next
        commute = CommutePayload(method=c.method, duration=c.duration, instructions=c.instructions)
    return CrawlStopPayload(
        bar=to_bar_payload(s.venue),
        order=s.order,
        reasoning=s.reasoning,
        estimatedTime=s.estimated_time,
        visitType=s.visit_type,
        commuteToNext=commute,
    )


def to_crawl_payload(crawl: BarCrawl) -> BarCrawlPayload:
    return BarCrawlPayload(
        stops=[to_stop_payload(s) for s in crawl.stops],
        totalEstimatedTime=crawl.total_estimated_time,
        overview=crawl.overview,
    )


def to_vibe_payload(rec: VibeRecommendation) -> VibeRecommendationPayload:
    bar = VibeBarPayload(**to_bar_payload(rec.venue).model_dump(), vibe=rec.vibe, description=rec.description)
    return VibeRecommendationPayload(vibe=rec.vibe, bar=bar)


def to_preferences(req: PlanRequest) -> PlanningPreferences:
    return PlanningPreferences(
        neighborhood=req.neighborhood.strip(),
        number_of_stops=req.numberOfStops,
        vibes=list(req.vibes),
        must_go_bar=(req.mustGoBar or "").strip() or None,
        day_of_week=req.dayOfWeek or None,
        start_time=req.startTime or None,
        end_time=req.endTime or None,
        allow_transit=req.allowTransit,
        vetoed_bars=list(req.vetoedBars),
    )


def _load_config(*checks: str) -> Configuration:
    cfg = Configuration.from_env()
    try:
        for check in checks:
            getattr(cfg, f"require_{check}")()
    except ValueError as exc:
        logger.error("configuration error: {}", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return cfg


@app.get("/healthz")
def healthz() -> dict:
    cfg = Configuration.from_env()
    logger.info("cfg: {}", cfg.log_summary())
    return {"status": "ok"}


@app.get("/health/places")
def health_places() -> dict:
    cfg = Configuration.from_env()
    try:
        cfg.require_places()
        ok = GooglePlacesClient(cfg).geocode("New York, NY") is not None
    except Exception as exc:
        logger.warning("places health check failed: {}", exc)
        ok = False
    return {"ok": ok}


@app.get("/health/llm")
def health_llm() -> dict:
    cfg = Configuration.from_env()
    provider = (cfg.llm_provider or "").lower()
    ok = False
    detail = None
    try:
        if provider == "ollama":
            r = requests.get(f"{cfg.ollama_base_url.rstrip('/')}/api/tags", timeout=5)
            ok = r.ok
            if r.ok:
                detail = r.json().get("models", [])
        elif cfg.llm_base_url:
            # OpenAI-compatible endpoint
            r = requests.get(f"{cfg.llm_base_url.rstrip('/')}/models", timeout=5)
            ok = r.ok
        else:
            ok = cfg.llm_enabled
    except Exception as exc:
        ok = False
        detail = str(exc)
    return {"ok": ok, "provider": provider or "unset", "detail": detail}


@app.get("/api/nearby-bars", response_model=NearbyBarsResponse)
async def nearby_bars(
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius: Optional[int] = None,
) -> NearbyBarsResponse:
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Latitude and longitude are required")
    cfg = _load_config("places")
    client = GooglePlacesClient(cfg)
    try:
        venues = await asyncio.to_thread(client.nearby_bars, lat, lng, radius=radius or cfg.nearby_radius_m)
    except Exception as exc:
        logger.exception("Error fetching nearby bars: {}", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch nearby bars")
    bars = filter_adult_venues(venues, min_rating=cfg.min_rating)
    return NearbyBarsResponse(bars=[to_bar_payload(v) for v in bars])


@app.post("/api/plan", response_model=PlanResponse)
async def plan(req: PlanRequest) -> PlanResponse:
    cfg = _load_config("places", "llm")
    prefs = to_preferences(req)
    try:
        crawl = await plan_crawl(cfg, prefs, client=GooglePlacesClient(cfg), complete=complete)
    except Exception as exc:
        logger.exception("Error generating bar crawl plan for {}: {}", prefs.neighborhood, exc)
        raise HTTPException(status_code=500, detail="Failed to generate bar crawl plan")

    return PlanResponse(
        crawl=to_crawl_payload(crawl),
        directionsUrl=crawl_directions_url(crawl, allow_transit=prefs.allow_transit),
        report=build_crawl_report(prefs, crawl),
    )


@app.post("/api/vibe-recs", response_model=VibeRecsResponse)
async def vibe_recs(req: VibeRecsRequest) -> VibeRecsResponse:
    venues = [v for v in (parse_venue(b.model_dump()) for b in req.bars) if v is not None]
    if not venues:
        raise HTTPException(status_code=400, detail="No bars provided")
    cfg = _load_config("llm")
    try:
        recs = await recommend_vibes(cfg, venues, complete=complete)
    except Exception as exc:
        logger.exception("Error generating vibe recommendations: {}", exc)
        raise HTTPException(status_code=500, detail="Failed to generate vibe recommendations")
    return VibeRecsResponse(recommendations=[to_vibe_payload(r) for r in recs])


@app.get("/api/walking-distance", response_model=WalkingDistanceResponse)
async def walking_distance(
    origin_lat: Optional[float] = None,
    origin_lng: Optional[float] = None,
    dest_lat: Optional[float] = None,
    dest_lng: Optional[float] = None,
) -> WalkingDistanceResponse:
    if None in (origin_lat, origin_lng, dest_lat, dest_lng):
        raise HTTPException(status_code=400, detail="Origin and destination coordinates are required")
    cfg = _load_config("distance_matrix")
    client = GooglePlacesClient(cfg)
    try:
        result = await asyncio.to_thread(
            client.walking_distance, (origin_lat, origin_lng), (dest_lat, dest_lng)
        )
    except Exception as exc:
        logger.exception("Error fetching walking distance: {}", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch walking distance")
    return WalkingDistanceResponse(distance=result.distance, duration=result.duration)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8010, reload=True)
