from unittest.mock import MagicMock

import pytest

from bike_route_finder.models import (
    AnnotatedStep,
    Candidate,
    ElevationMetrics,
    GeoPoint,
    RouteOption,
    Step,
)

MARKET_5TH = GeoPoint(37.7837, -122.4073)
VALENCIA_16TH = GeoPoint(37.7650, -122.4220)


class FakeClock:
    """Manually advanced time source for cache expiry tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def straight_candidate():
    """A single straight two-point route of 2500 m with one step."""
    path = (MARKET_5TH, VALENCIA_16TH)
    return Candidate(
        path=path,
        steps=(Step(instruction="Head southwest on Market St", path=path, distance=2500.0),),
        distance=2500.0,
    )


@pytest.fixture
def mock_geocoder():
    geocoder = MagicMock()
    locations = {
        "market st & 5th st": MARKET_5TH,
        "valencia st & 16th st": VALENCIA_16TH,
    }
    geocoder.resolve.side_effect = lambda address, region_hint=None: locations.get(
        address.strip().lower(), GeoPoint(37.77, -122.42)
    )
    return geocoder


@pytest.fixture
def mock_routing(straight_candidate):
    routing = MagicMock()
    routing.route.return_value = straight_candidate
    return routing


@pytest.fixture
def mock_elevation():
    elevation = MagicMock()
    elevation.sample_along_path.return_value = [10, 20, 15, 15, 30]
    return elevation


@pytest.fixture
def sample_routes():
    """Two finished route options as returned by a finder."""
    path = (MARKET_5TH, VALENCIA_16TH)
    step = AnnotatedStep(
        instruction="Head southwest on Market St",
        path=path,
        distance=2500.0,
        elevation=25,
        grade=1.0,
        max_grade=15.0,
    )
    return [
        RouteOption(
            id="default",
            name="Default Route",
            description="Standard cycling directions",
            path=path,
            steps=(step,),
            metrics=ElevationMetrics(total_gain=25, total_loss=5, max_grade=15.0, average_grade=7.5),
            distance=2500.0,
            elevations=(10.0, 20.0, 15.0, 15.0, 30.0),
        ),
        RouteOption(
            id="minimum_elevation",
            name="MinimumElevation",
            description="Avoids hills",
            path=path,
            steps=(step,),
            metrics=ElevationMetrics(total_gain=12, total_loss=2, max_grade=4.0, average_grade=1.5),
            distance=3100.0,
            elevations=(10.0, 22.0, 20.0),
        ),
    ]
