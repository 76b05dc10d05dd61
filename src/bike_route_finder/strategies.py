"""Named route search strategies and the selector that evaluates them.

A strategy is a list of waypoint variants sent to the routing provider. The
selector scores each returned candidate on elevation and keeps the one that
best fits the strategy's objective.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from bike_route_finder.errors import ProviderTransientError
from bike_route_finder.models import GeoPoint, RouteOption, RouteRequest
from bike_route_finder.providers import ElevationProvider, RoutingProvider
from bike_route_finder.scoring import ScoringConfig, build_route_option, score_candidate

logger = logging.getLogger(__name__)

# Variants tried per strategy: first waypoint, second, both, both with region
DEFAULT_SEARCH_DEPTH = 4


class Objective(str, Enum):
    MINIMIZE = "minimize"  # lowest total gain
    MATCH_BASELINE = "match_baseline"  # total gain closest to the default route's


@dataclass(frozen=True)
class Strategy:
    id: str
    name: str
    description: str
    objective: Objective
    waypoints: tuple[GeoPoint, ...]


# San Francisco waypoints
DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    Strategy(
        id="minimum_elevation",
        name="MinimumElevation",
        description="Avoids hills by routing through the flattest corridors (The Wiggle, Market St)",
        objective=Objective.MINIMIZE,
        waypoints=(
            GeoPoint(37.7695, -122.4335),  # Duboce Ave & Steiner St
            GeoPoint(37.7752, -122.4193),  # Market St & Van Ness Ave
            GeoPoint(37.7932, -122.3934),  # The Embarcadero & Mission St
            GeoPoint(37.7633, -122.4218),  # Valencia St & 17th St
        ),
    ),
    Strategy(
        id="balanced",
        name="BalancedRoute",
        description="Moderate climbing, close to the default route's elevation gain",
        objective=Objective.MATCH_BASELINE,
        waypoints=(
            GeoPoint(37.7614, -122.4259),  # Dolores St & 18th St
            GeoPoint(37.7763, -122.4346),  # Alamo Square
            GeoPoint(37.7677, -122.4291),  # Church St & Market St
        ),
    ),
    Strategy(
        id="scenic",
        name="ScenicRoute",
        description="Detours through parks and waterfront with similar climbing",
        objective=Objective.MATCH_BASELINE,
        waypoints=(
            GeoPoint(37.7717, -122.4600),  # Golden Gate Park, JFK Dr
            GeoPoint(37.8039, -122.4644),  # Crissy Field
            GeoPoint(37.7852, -122.5050),  # Lands End
        ),
    ),
)


def build_variants(strategy: Strategy, region: str | None = None) -> list[RouteRequest]:
    """Route requests to try for a strategy, in evaluation order.

    Uses the strategy's first two waypoints singly, jointly, and jointly with
    the region hint. Duplicate requests are dropped.
    """
    waypoints = strategy.waypoints[:2]
    if not waypoints:
        candidates = [RouteRequest(), RouteRequest(region=region)]
    else:
        candidates = [RouteRequest(waypoints=(wp,)) for wp in waypoints]
        candidates.append(RouteRequest(waypoints=waypoints))
        candidates.append(RouteRequest(waypoints=waypoints, region=region))

    variants = []
    for request in candidates:
        if request not in variants:
            variants.append(request)
    return variants


def objective_score(objective: Objective, gain: float, baseline_gain: float) -> float:
    """Lower is better."""
    if objective is Objective.MINIMIZE:
        return gain
    return abs(gain - baseline_gain)


def strategies_from_config(entries: list[dict]) -> tuple[Strategy, ...]:
    """Build a strategy table from config entries.

    Each entry needs id, objective ("minimize" or "match_baseline") and
    waypoints as [lat, lon] pairs; name and description default to the id.

    Raises:
        ValueError: If an entry is malformed.
    """
    strategies = []
    for entry in entries:
        try:
            strategy_id = entry["id"]
            objective = Objective(entry["objective"])
            waypoints = tuple(GeoPoint(float(lat), float(lon)) for lat, lon in entry.get("waypoints", []))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid strategy config {entry!r}: {e}") from e
        strategies.append(
            Strategy(
                id=strategy_id,
                name=entry.get("name", strategy_id),
                description=entry.get("description", ""),
                objective=objective,
                waypoints=waypoints,
            )
        )
    return tuple(strategies)


class StrategySelector:
    """Evaluates one strategy's variants and picks the winning candidate.

    Variants are evaluated strictly in order. With early_exit the search stops
    at the first candidate that improves on the best so far, which means the
    first variant that succeeds. Without it, up to search_depth variants are
    all scored and the best one kept, ties going to the earlier variant.
    """

    def __init__(
        self,
        routing: RoutingProvider,
        elevation: ElevationProvider,
        scoring: ScoringConfig | None = None,
        search_depth: int = DEFAULT_SEARCH_DEPTH,
        early_exit: bool = True,
        region: str | None = None,
    ):
        if search_depth < 1:
            raise ValueError(f"search_depth must be at least 1, got {search_depth}")
        self.routing = routing
        self.elevation = elevation
        self.scoring = scoring or ScoringConfig()
        self.search_depth = search_depth
        self.early_exit = early_exit
        self.region = region

    def evaluate(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        strategy: Strategy,
        baseline_gain: float = 0.0,
    ) -> RouteOption | None:
        """Find the best candidate for a strategy.

        Provider failures skip the variant. Returns None if no variant
        produced a scorable candidate.
        """
        variants = build_variants(strategy, self.region)[: self.search_depth]
        best = None
        best_score = math.inf

        for index, request in enumerate(variants, start=1):
            try:
                candidate = self.routing.route(origin, destination, request)
                scored = score_candidate(candidate, self.elevation, self.scoring)
            except ProviderTransientError as e:
                logger.warning("%s variant %d/%d skipped: %s", strategy.name, index, len(variants), e)
                continue

            score = objective_score(strategy.objective, scored.metrics.total_gain, baseline_gain)
            logger.debug("%s variant %d: gain=%s score=%s", strategy.name, index, scored.metrics.total_gain, score)
            if score < best_score:
                best = scored
                best_score = score
                if self.early_exit:
                    break

        if best is None:
            logger.warning("%s produced no route", strategy.name)
            return None

        logger.info("%s selected: gain=%s distance=%.0fm", strategy.name, best.metrics.total_gain, best.distance)
        return build_route_option(best, strategy.id, strategy.name, strategy.description, self.scoring)
