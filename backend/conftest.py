import sys
from pathlib import Path

import pytest


# Ensure backend/src is on sys.path for tests so that imports like `services.*` work.
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from models import Venue  # noqa: E402


@pytest.fixture
def make_venue():
    counter = {"n": 0}

    def _make(name: str = "Bar", **overrides) -> Venue:
        counter["n"] += 1
        fields = {
            "place_id": overrides.pop("place_id", f"place-{counter['n']}"),
            "name": name,
            "vicinity": "123 Ave A, New York",
            "lat": 40.7265,
            "lng": -73.9815,
            "rating": 4.2,
            "price_level": 2,
            "business_status": "OPERATIONAL",
            "types": ["bar", "point_of_interest", "establishment"],
        }
        fields.update(overrides)
        return Venue(**fields)

    return _make
