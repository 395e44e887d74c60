from __future__ import annotations

from typing import Any, List, Optional

import requests
from loguru import logger

from config import Configuration
from models import GeocodeResult, Venue, WalkingDistance


class PlacesError(RuntimeError):
    pass


def parse_venue(raw: dict) -> Optional[Venue]:
    """Build a Venue from a Places API result (or the same shape echoed by a client).

    Returns None when the record carries no usable coordinates or id.
    """
    location = ((raw.get("geometry") or {}).get("location") or {})
    lat = location.get("lat")
    lng = location.get("lng")
    place_id = raw.get("place_id")
    if lat is None or lng is None or not place_id:
        return None

    rating = raw.get("rating") if isinstance(raw.get("rating"), (int, float)) else None
    price = raw.get("price_level") if isinstance(raw.get("price_level"), int) else None
    photos = [
        str(p["photo_reference"])
        for p in (raw.get("photos") or [])
        if isinstance(p, dict) and p.get("photo_reference")
    ]
    hours = raw.get("opening_hours") or {}
    open_now = hours.get("open_now") if isinstance(hours, dict) else None

    return Venue(
        place_id=str(place_id),
        name=str(raw.get("name") or "Bar"),
        vicinity=str(raw.get("vicinity") or raw.get("formatted_address") or ""),
        lat=float(lat),
        lng=float(lng),
        rating=(float(rating) if rating is not None else None),
        price_level=price,
        business_status=str(raw.get("business_status") or "OPERATIONAL"),
        types=[str(t) for t in (raw.get("types") or [])],
        photos=photos,
        open_now=(bool(open_now) if open_now is not None else None),
        wait_info=raw.get("waitInfo") or None,
    )


def _parse_venues(results: List[dict]) -> List[Venue]:
    venues: list[Venue] = []
    for raw in results:
        venue = parse_venue(raw)
        if venue is not None:
            venues.append(venue)
    return venues


class GooglePlacesClient:
    def __init__(self, cfg: Configuration) -> None:
        self.cfg = cfg
        self.base = cfg.google_maps_base_url.rstrip("/")
        self.session = requests.Session()

    def _get(self, path: str, params: dict, *, key: Optional[str] = None) -> dict:
        url = f"{self.base}{path}"
        headers = {"Accept": "application/json"}
        params = {**params, "key": key or self.cfg.google_places_api_key}
        try:
            resp = self.session.get(url, headers=headers, params=params, timeout=self.cfg.google_timeout)
        except requests.RequestException as exc:  # network error
            raise PlacesError(f"request error: {exc}")

        if not resp.ok:
            snippet = resp.text[:300]
            raise PlacesError(f"upstream {resp.status_code}: {snippet}")

        try:
            return resp.json()
        except ValueError:
            raise PlacesError("invalid json response")

    @staticmethod
    def _check_status(payload: dict, label: str, *, allow_empty: bool = True) -> str:
        status = str(payload.get("status") or "UNKNOWN")
        if status == "OK" or (allow_empty and status == "ZERO_RESULTS"):
            return status
        message = payload.get("error_message")
        raise PlacesError(f"{label} error: {status}" + (f" ({message})" if message else ""))

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        payload = self._get("/geocode/json", {"address": address})
        status = self._check_status(payload, "Geocoding API")
        results = payload.get("results") or []
        if status == "ZERO_RESULTS" or not results:
            return None
        first = results[0]
        location = (first.get("geometry") or {}).get("location") or {}
        if location.get("lat") is None or location.get("lng") is None:
            return None
        return GeocodeResult(
            lat=float(location["lat"]),
            lng=float(location["lng"]),
            formatted_address=first.get("formatted_address"),
        )

    def nearby_bars(self, lat: float, lng: float, *, radius: int) -> List[Venue]:
        params = {"location": f"{lat},{lng}", "radius": str(radius), "type": "bar"}
        payload = self._get("/place/nearbysearch/json", params)
        self._check_status(payload, "Google Places API")
        venues = _parse_venues(payload.get("results") or [])
        logger.debug("nearby search lat={} lng={} radius={} -> {} venues", lat, lng, radius, len(venues))
        return venues

    def text_search(self, query: str) -> List[Venue]:
        payload = self._get("/place/textsearch/json", {"query": query, "type": "bar"})
        self._check_status(payload, "Google Places text search")
        return _parse_venues(payload.get("results") or [])

    def place_reviews(self, place_id: str) -> List[str]:
        payload = self._get("/place/details/json", {"place_id": place_id, "fields": "reviews"})
        self._check_status(payload, "Google Place Details")
        result: dict[str, Any] = payload.get("result") or {}
        reviews = result.get("reviews") or []
        return [str(r.get("text") or "") for r in reviews if isinstance(r, dict)]

    def walking_distance(
        self,
        origin: tuple[float, float],
        destination: tuple[float, float],
    ) -> WalkingDistance:
        params = {
            "origins": f"{origin[0]},{origin[1]}",
            "destinations": f"{destination[0]},{destination[1]}",
            "mode": "walking",
        }
        payload = self._get("/distancematrix/json", params, key=self.cfg.distance_matrix_key)
        self._check_status(payload, "Google Distance Matrix API", allow_empty=False)
        rows = payload.get("rows") or []
        elements = (rows[0].get("elements") or []) if rows else []
        element = elements[0] if elements else None
        if not element or element.get("status") != "OK":
            raise PlacesError("Unable to calculate walking distance")
        return WalkingDistance(
            distance=str((element.get("distance") or {}).get("text") or ""),
            duration=str((element.get("duration") or {}).get("text") or ""),
        )
