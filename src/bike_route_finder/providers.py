"""External collaborators: geocoding, routing and elevation sampling.

The engine only depends on the three base classes below. Google Maps
(Directions and Elevation APIs) and geopy geocoders are the concrete
implementations used by the CLI and web app.
"""

import html
import logging
import re
import threading
from typing import Callable, Sequence

import polyline
import requests
from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import GoogleV3, Nominatim

from bike_route_finder.errors import AddressNotFound, NoRoute, ProviderError
from bike_route_finder.models import Candidate, GeoPoint, RouteRequest, Step

logger = logging.getLogger(__name__)

# API endpoints
GOOGLE_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"
DIRECTIONS_URL = f"{GOOGLE_MAPS_BASE_URL}/directions/json"
ELEVATION_URL = f"{GOOGLE_MAPS_BASE_URL}/elevation/json"

# Directions statuses meaning "no path", as opposed to a failed request
NO_ROUTE_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}

# Longest path sent to the Elevation API; keeps the request URL under its limit
MAX_ELEVATION_PATH_POINTS = 400

NOMINATIM_USER_AGENT = "bike-route-finder/1.0"


class Geocoder:
    """Resolves free-text addresses to coordinates."""

    def resolve(self, address: str, region_hint: dict | None = None) -> GeoPoint:
        raise NotImplementedError


class RoutingProvider:
    """Produces a candidate route between two points."""

    def route(self, origin: GeoPoint, destination: GeoPoint, request: RouteRequest) -> Candidate:
        raise NotImplementedError


class ElevationProvider:
    """Samples elevation at evenly spaced points along a path."""

    def sample_along_path(self, path: Sequence[GeoPoint], sample_count: int) -> list[float]:
        raise NotImplementedError


# ============================================================================
# Google Maps
# ============================================================================

class GoogleMapsClient:
    """Shared HTTP handling for Google Maps web service APIs.

    requests.Session is not thread-safe, so unless a session is injected each
    calling thread gets its own.
    """

    DEFAULT_TIMEOUT = 30

    def __init__(self, api_key: str, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """HTTP session for the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def _get(self, url: str, params: dict) -> dict:
        """GET a Google Maps endpoint and decode its JSON body.

        Raises:
            ProviderError: On transport errors, HTTP errors or invalid JSON.
        """
        params = dict(params, key=self.api_key)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise ProviderError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Invalid JSON from {url}") from e


def strip_html(text: str) -> str:
    """Convert an HTML instruction into plain text."""
    text = re.sub(r"<[^>]+>", " ", text)
    return " ".join(html.unescape(text).split())


def decode_points(encoded: str) -> tuple[GeoPoint, ...]:
    """Decode a Google encoded polyline into GeoPoints."""
    return tuple(GeoPoint(lat, lon) for lat, lon in polyline.decode(encoded))


def parse_directions(data: dict) -> Candidate:
    """Build a Candidate from the first route of a Directions API response.

    The route path is the concatenation of the step polylines, with the shared
    point between consecutive steps kept once, so every step's endpoints are
    points of the path.
    """
    route = data["routes"][0]
    path: list[GeoPoint] = []
    steps: list[Step] = []
    distance = 0.0

    for leg in route.get("legs", []):
        distance += leg.get("distance", {}).get("value", 0)
        for raw in leg.get("steps", []):
            points = decode_points(raw.get("polyline", {}).get("points", ""))
            steps.append(
                Step(
                    instruction=strip_html(raw.get("html_instructions", "")),
                    path=points,
                    distance=float(raw.get("distance", {}).get("value", 0)),
                )
            )
            for pt in points:
                if path and path[-1] == pt:
                    continue
                path.append(pt)

    # Routes without step geometry fall back to the simplified overview
    if not path and "overview_polyline" in route:
        path = list(decode_points(route["overview_polyline"].get("points", "")))

    return Candidate(path=tuple(path), steps=tuple(steps), distance=float(distance))


class GoogleDirectionsProvider(GoogleMapsClient, RoutingProvider):
    """Bicycling directions from the Google Directions API."""

    def route(self, origin: GeoPoint, destination: GeoPoint, request: RouteRequest) -> Candidate:
        params = {
            "origin": origin.as_query(),
            "destination": destination.as_query(),
            "mode": "bicycling",
        }
        avoid = []
        if request.avoid_highways:
            avoid.append("highways")
        if request.avoid_ferries:
            avoid.append("ferries")
        if avoid:
            params["avoid"] = "|".join(avoid)
        if request.waypoints:
            # via: waypoints shape the path without splitting it into legs
            params["waypoints"] = "|".join(f"via:{p.as_query()}" for p in request.waypoints)
        if request.region:
            params["region"] = request.region

        logger.debug("Directions request: %s -> %s via %d waypoint(s)",
                     params["origin"], params["destination"], len(request.waypoints))
        data = self._get(DIRECTIONS_URL, params)

        status = data.get("status")
        if status in NO_ROUTE_STATUSES:
            raise NoRoute(f"No bicycling route found ({status})")
        if status != "OK" or not data.get("routes"):
            message = data.get("error_message") or status
            raise ProviderError(f"Directions request failed: {message}")

        candidate = parse_directions(data)
        if not candidate.path:
            raise ProviderError("Directions response contained no route geometry")
        return candidate


def thin_path(path: Sequence[GeoPoint], max_points: int) -> list[GeoPoint]:
    """Evenly pick at most max_points points from a path, keeping both endpoints."""
    if len(path) <= max_points:
        return list(path)
    stride = (len(path) - 1) / (max_points - 1)
    return [path[round(i * stride)] for i in range(max_points)]


class GoogleElevationProvider(GoogleMapsClient, ElevationProvider):
    """Elevation profiles from the Google Elevation API."""

    def sample_along_path(self, path: Sequence[GeoPoint], sample_count: int) -> list[float]:
        if not path:
            raise ProviderError("Cannot sample elevation along an empty path")

        points = thin_path(path, MAX_ELEVATION_PATH_POINTS)
        if len(points) == 1:
            points = points * 2
        encoded = polyline.encode([(p.lat, p.lon) for p in points])

        data = self._get(ELEVATION_URL, {"path": f"enc:{encoded}", "samples": sample_count})
        status = data.get("status")
        if status != "OK":
            message = data.get("error_message") or status
            raise ProviderError(f"Elevation request failed: {message}")

        return [result.get("elevation") for result in data.get("results", [])]


# ============================================================================
# Geocoding
# ============================================================================

class GeopyGeocoder(Geocoder):
    """Geocoder backed by a geopy geocode callable.

    With use_components the region hint is passed as Google component
    filters; otherwise its values are appended to the query text.
    """

    def __init__(self, geocode: Callable, use_components: bool = False):
        self.geocode = geocode
        self.use_components = use_components

    def resolve(self, address: str, region_hint: dict | None = None) -> GeoPoint:
        if not address or not address.strip():
            raise AddressNotFound(address, "empty address")

        try:
            if region_hint and self.use_components:
                location = self.geocode(address, components=region_hint)
            elif region_hint:
                location = self.geocode(_with_region(address, region_hint))
            else:
                location = self.geocode(address)
        except GeopyError as e:
            raise AddressNotFound(address, str(e)) from e

        if location is None:
            raise AddressNotFound(address)
        logger.debug("Geocoded %r to (%f, %f)", address, location.latitude, location.longitude)
        return GeoPoint(location.latitude, location.longitude)


def _with_region(address: str, region_hint: dict) -> str:
    parts = [address.strip()]
    parts.extend(str(v) for v in region_hint.values() if v)
    return ", ".join(parts)


def make_geocoder(kind: str, api_key: str | None = None, timeout: float = 10) -> GeopyGeocoder:
    """Create a geocoder by name ("google" or "nominatim").

    Raises:
        ValueError: If the name is unknown or Google is requested without a key.
    """
    if kind == "google":
        if not api_key:
            raise ValueError("Google geocoding requires a Google Maps API key")
        return GeopyGeocoder(GoogleV3(api_key=api_key, timeout=timeout).geocode, use_components=True)
    if kind == "nominatim":
        nominatim = Nominatim(user_agent=NOMINATIM_USER_AGENT, timeout=timeout)
        # Nominatim usage policy allows 1 request per second
        return GeopyGeocoder(RateLimiter(nominatim.geocode, min_delay_seconds=1.0))
    raise ValueError(f"Unknown geocoder: {kind}")
