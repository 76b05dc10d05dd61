"""Combine the default route and every strategy's winner into one result list."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from bike_route_finder.errors import NoRoutesFound, ProviderTransientError
from bike_route_finder.models import GeoPoint, RouteOption, RouteRequest
from bike_route_finder.providers import ElevationProvider, RoutingProvider
from bike_route_finder.scoring import ScoringConfig, build_route_option, score_candidate
from bike_route_finder.strategies import DEFAULT_STRATEGIES, Strategy, StrategySelector

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_ID = "default"
DEFAULT_ROUTE_NAME = "Default Route"
DEFAULT_ROUTE_DESCRIPTION = "Standard cycling directions, avoiding highways and ferries"

DEFAULT_MAX_WORKERS = 4


class RouteAggregator:
    """Runs the default route and all strategies for one origin/destination.

    The default route is evaluated first since its gain is the baseline for
    MATCH_BASELINE strategies. Strategies then run on a bounded thread pool;
    results keep strategy-table order regardless of completion order.
    """

    def __init__(
        self,
        routing: RoutingProvider,
        elevation: ElevationProvider,
        strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
        selector: StrategySelector | None = None,
        scoring: ScoringConfig | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.routing = routing
        self.elevation = elevation
        self.strategies = tuple(strategies)
        self.scoring = scoring or (selector.scoring if selector else ScoringConfig())
        self.selector = selector or StrategySelector(routing, elevation, scoring=self.scoring)
        self.max_workers = max(1, max_workers)

    def find_routes(self, origin: GeoPoint, destination: GeoPoint) -> list[RouteOption]:
        """Default route first (if any), then each strategy's result in order.

        Raises:
            NoRoutesFound: If nothing at all could be routed.
        """
        default = self._default_route(origin, destination)
        baseline_gain = default.metrics.total_gain if default else 0.0

        routes = [default] if default else []
        for option in self._run_strategies(origin, destination, baseline_gain):
            if option is not None:
                routes.append(option)

        if not routes:
            raise NoRoutesFound(
                f"No routes found from ({origin.lat}, {origin.lon}) to ({destination.lat}, {destination.lon})"
            )
        logger.info("Found %d route option(s)", len(routes))
        return routes

    def _default_route(self, origin: GeoPoint, destination: GeoPoint) -> RouteOption | None:
        try:
            candidate = self.routing.route(origin, destination, RouteRequest(avoid_highways=True, avoid_ferries=True))
            scored = score_candidate(candidate, self.elevation, self.scoring)
        except ProviderTransientError as e:
            logger.warning("Default route failed, continuing with zero baseline: %s", e)
            return None
        return build_route_option(
            scored, DEFAULT_ROUTE_ID, DEFAULT_ROUTE_NAME, DEFAULT_ROUTE_DESCRIPTION, self.scoring
        )

    def _run_strategies(
        self, origin: GeoPoint, destination: GeoPoint, baseline_gain: float
    ) -> list[RouteOption | None]:
        if self.max_workers == 1 or len(self.strategies) <= 1:
            return [
                self.selector.evaluate(origin, destination, strategy, baseline_gain)
                for strategy in self.strategies
            ]

        workers = min(self.max_workers, len(self.strategies))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self.selector.evaluate, origin, destination, strategy, baseline_gain)
                for strategy in self.strategies
            ]
            return [future.result() for future in futures]
