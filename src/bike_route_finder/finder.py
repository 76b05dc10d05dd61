"""Entry point for route queries: cache, geocoding, aggregation."""

import logging
from concurrent.futures import ThreadPoolExecutor

from bike_route_finder.aggregator import RouteAggregator
from bike_route_finder.cache import ResultCache
from bike_route_finder.config import Settings
from bike_route_finder.models import GeoPoint, RouteOption
from bike_route_finder.providers import (
    Geocoder,
    GoogleDirectionsProvider,
    GoogleElevationProvider,
    make_geocoder,
)
from bike_route_finder.scoring import ScoringConfig
from bike_route_finder.strategies import StrategySelector

logger = logging.getLogger(__name__)


class RouteFinder:
    """Answers find_routes(start, end) queries.

    Order of work: cache lookup, geocoding of both endpoints (concurrently),
    aggregation, cache population. Cache errors never reach the caller; they
    are logged and the query is computed in full.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        aggregator: RouteAggregator,
        cache: ResultCache | None = None,
        region_hint: dict | None = None,
    ):
        self.geocoder = geocoder
        self.aggregator = aggregator
        self.cache = cache if cache is not None else ResultCache()
        self.region_hint = region_hint

    def find_routes(self, start: str, end: str) -> list[RouteOption]:
        """Scored route options from start to end, default route first.

        Raises:
            AddressNotFound: If either address cannot be geocoded.
            NoRoutesFound: If no route could be produced.
        """
        cached = self._cache_get(start, end)
        if cached is not None:
            logger.debug("Cache hit for %r -> %r", start, end)
            return cached
        logger.debug("Cache miss for %r -> %r", start, end)

        origin, destination = self.geocode_endpoints(start, end)
        routes = self.aggregator.find_routes(origin, destination)
        self._cache_put(start, end, routes)
        return routes

    def geocode_endpoints(self, start: str, end: str) -> tuple[GeoPoint, GeoPoint]:
        """Resolve both addresses concurrently. Start errors are reported first."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            start_future = pool.submit(self.geocoder.resolve, start, self.region_hint)
            end_future = pool.submit(self.geocoder.resolve, end, self.region_hint)
            return start_future.result(), end_future.result()

    def _cache_get(self, start: str, end: str) -> list[RouteOption] | None:
        try:
            return self.cache.get(start, end)
        except Exception as e:
            logger.warning("Route cache lookup failed, recomputing: %s", e)
            return None

    def _cache_put(self, start: str, end: str, routes: list[RouteOption]) -> None:
        try:
            self.cache.put(start, end, routes)
        except Exception as e:
            logger.warning("Route cache write failed: %s", e)


def build_finder(settings: Settings, cache: ResultCache | None = None) -> RouteFinder:
    """Wire Google Maps providers, strategies and cache from settings.

    Raises:
        ValueError: If no Google Maps API key is configured.
    """
    if not settings.api_key:
        raise ValueError(
            "Google Maps API key not configured. Set google_maps_api_key in your "
            "config file or the GOOGLE_MAPS_API_KEY environment variable."
        )

    routing = GoogleDirectionsProvider(settings.api_key, timeout=settings.request_timeout)
    elevation = GoogleElevationProvider(settings.api_key, timeout=settings.request_timeout)
    geocoder = make_geocoder(settings.geocoder, settings.api_key)

    scoring = ScoringConfig(
        sample_spacing=settings.sample_spacing,
        true_spacing=settings.true_sample_spacing,
        min_samples=settings.min_samples,
        max_samples=settings.max_samples,
        meters_per_sample=settings.meters_per_sample,
        step_match_tolerance=settings.step_match_tolerance,
    )
    selector = StrategySelector(
        routing,
        elevation,
        scoring=scoring,
        search_depth=settings.search_depth,
        early_exit=settings.early_exit,
        region=settings.routing_region,
    )
    aggregator = RouteAggregator(
        routing,
        elevation,
        strategies=settings.strategies,
        selector=selector,
        scoring=scoring,
        max_workers=settings.max_workers,
    )
    if cache is None:
        cache = ResultCache(ttl_seconds=settings.cache_ttl_seconds, max_size=settings.cache_max_size)
    return RouteFinder(geocoder, aggregator, cache=cache, region_hint=settings.region)
