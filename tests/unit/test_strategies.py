"""Tests for strategy variants and selection."""

from unittest.mock import MagicMock

import pytest

from bike_route_finder.errors import NoRoute, ProviderError
from bike_route_finder.models import Candidate, GeoPoint, RouteRequest, Step
from bike_route_finder.strategies import (
    DEFAULT_STRATEGIES,
    Objective,
    Strategy,
    StrategySelector,
    build_variants,
    objective_score,
    strategies_from_config,
)

ORIGIN = GeoPoint(37.7837, -122.4073)
DESTINATION = GeoPoint(37.7650, -122.4220)
WP1 = GeoPoint(37.7695, -122.4335)
WP2 = GeoPoint(37.7752, -122.4193)


def make_candidate(distance: float) -> Candidate:
    path = (ORIGIN, DESTINATION)
    return Candidate(path=path, steps=(Step("Ride", path, distance),), distance=distance)


@pytest.fixture
def flat_strategy():
    return Strategy(
        id="flat",
        name="Flat",
        description="Flattest",
        objective=Objective.MINIMIZE,
        waypoints=(WP1, WP2, GeoPoint(37.79, -122.39)),
    )


@pytest.fixture
def match_strategy():
    return Strategy(
        id="match",
        name="Match",
        description="Like the default",
        objective=Objective.MATCH_BASELINE,
        waypoints=(WP1, WP2),
    )


class TestBuildVariants:
    def test_four_variants_with_region(self, flat_strategy):
        variants = build_variants(flat_strategy, region="us")
        assert variants == [
            RouteRequest(waypoints=(WP1,)),
            RouteRequest(waypoints=(WP2,)),
            RouteRequest(waypoints=(WP1, WP2)),
            RouteRequest(waypoints=(WP1, WP2), region="us"),
        ]

    def test_only_first_two_waypoints_used(self, flat_strategy):
        for request in build_variants(flat_strategy, region="us"):
            assert set(request.waypoints) <= {WP1, WP2}

    def test_variants_avoid_highways_and_ferries(self, flat_strategy):
        for request in build_variants(flat_strategy, region="us"):
            assert request.avoid_highways
            assert request.avoid_ferries

    def test_duplicates_dropped_without_region(self, flat_strategy):
        assert len(build_variants(flat_strategy)) == 3

    def test_single_waypoint(self):
        strategy = Strategy("one", "One", "", Objective.MINIMIZE, (WP1,))
        assert build_variants(strategy, region="us") == [
            RouteRequest(waypoints=(WP1,)),
            RouteRequest(waypoints=(WP1,), region="us"),
        ]

    def test_no_waypoints(self):
        strategy = Strategy("none", "None", "", Objective.MINIMIZE, ())
        assert build_variants(strategy) == [RouteRequest()]

    def test_canonical_strategy_order(self):
        assert [s.name for s in DEFAULT_STRATEGIES] == ["MinimumElevation", "BalancedRoute", "ScenicRoute"]
        assert [s.objective for s in DEFAULT_STRATEGIES] == [
            Objective.MINIMIZE, Objective.MATCH_BASELINE, Objective.MATCH_BASELINE,
        ]
        for strategy in DEFAULT_STRATEGIES:
            assert len(build_variants(strategy, region="us")) == 4


class TestObjectiveScore:
    def test_minimize_uses_gain(self):
        assert objective_score(Objective.MINIMIZE, 42, baseline_gain=10) == 42

    def test_match_baseline_uses_distance_from_baseline(self):
        assert objective_score(Objective.MATCH_BASELINE, 42, baseline_gain=50) == 8
        assert objective_score(Objective.MATCH_BASELINE, 58, baseline_gain=50) == 8


class TestStrategiesFromConfig:
    def test_builds_strategies(self):
        result = strategies_from_config([
            {
                "id": "flat",
                "name": "Flat Route",
                "description": "Along the bay",
                "objective": "minimize",
                "waypoints": [[37.79, -122.39], [37.80, -122.40]],
            },
            {"id": "similar", "objective": "match_baseline"},
        ])
        assert result[0] == Strategy(
            "flat", "Flat Route", "Along the bay", Objective.MINIMIZE,
            (GeoPoint(37.79, -122.39), GeoPoint(37.80, -122.40)),
        )
        assert result[1].name == "similar"
        assert result[1].objective is Objective.MATCH_BASELINE
        assert result[1].waypoints == ()

    def test_unknown_objective(self):
        with pytest.raises(ValueError, match="Invalid strategy config"):
            strategies_from_config([{"id": "x", "objective": "maximize"}])

    def test_missing_id(self):
        with pytest.raises(ValueError, match="Invalid strategy config"):
            strategies_from_config([{"objective": "minimize"}])

    def test_bad_waypoint(self):
        with pytest.raises(ValueError, match="Invalid strategy config"):
            strategies_from_config([{"id": "x", "objective": "minimize", "waypoints": [[1.0]]}])


class TestStrategySelector:
    def test_early_exit_after_first_success(self, flat_strategy):
        routing = MagicMock()
        routing.route.return_value = make_candidate(1000.0)
        elevation = MagicMock()
        elevation.sample_along_path.return_value = [10, 10, 10]

        selector = StrategySelector(routing, elevation, region="us")
        result = selector.evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result is not None
        assert routing.route.call_count == 1
        assert elevation.sample_along_path.call_count == 1
        routing.route.assert_called_once_with(ORIGIN, DESTINATION, RouteRequest(waypoints=(WP1,)))

    def test_result_tagged_with_strategy(self, flat_strategy):
        routing = MagicMock()
        routing.route.return_value = make_candidate(1000.0)
        elevation = MagicMock()
        elevation.sample_along_path.return_value = [0, 5, 3]

        result = StrategySelector(routing, elevation).evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result.id == "flat"
        assert result.name == "Flat"
        assert result.description == "Flattest"
        assert result.metrics.total_gain == 5
        assert result.metrics.total_loss == 2
        assert result.elevations == (0.0, 5.0, 3.0)
        assert result.distance == 1000.0
        assert len(result.steps) == 1

    def test_failed_variant_skipped(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = [NoRoute("no path"), make_candidate(1200.0)]
        elevation = MagicMock()
        elevation.sample_along_path.return_value = [0, 1]

        result = StrategySelector(routing, elevation, region="us").evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result.distance == 1200.0
        assert routing.route.call_count == 2
        assert elevation.sample_along_path.call_count == 1

    def test_elevation_failure_skips_variant(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = [make_candidate(1000.0), make_candidate(2000.0)]
        elevation = MagicMock()
        elevation.sample_along_path.side_effect = [ProviderError("quota"), [0, 1]]

        result = StrategySelector(routing, elevation, region="us").evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result.distance == 2000.0

    def test_malformed_samples_skip_variant(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = [make_candidate(1000.0), make_candidate(2000.0)]
        elevation = MagicMock()
        elevation.sample_along_path.side_effect = [[0, float("nan")], [0, 1]]

        result = StrategySelector(routing, elevation, region="us").evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result.distance == 2000.0

    def test_all_variants_fail(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = NoRoute("no path")
        elevation = MagicMock()

        result = StrategySelector(routing, elevation, region="us").evaluate(ORIGIN, DESTINATION, flat_strategy)

        assert result is None
        assert routing.route.call_count == 4
        elevation.sample_along_path.assert_not_called()

    def test_exhaustive_minimize_picks_lowest_gain(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = [make_candidate(d) for d in (1000.0, 2000.0, 3000.0, 4000.0)]
        elevation = MagicMock()
        elevation.sample_along_path.side_effect = [[0, 30], [0, 10], [0, 20], [0, 10]]

        selector = StrategySelector(routing, elevation, early_exit=False, region="us")
        result = selector.evaluate(ORIGIN, DESTINATION, flat_strategy)

        # Ties go to the earlier variant
        assert result.distance == 2000.0
        assert result.metrics.total_gain == 10
        assert elevation.sample_along_path.call_count == 4

    def test_exhaustive_match_baseline_picks_closest(self, match_strategy):
        routing = MagicMock()
        routing.route.side_effect = [make_candidate(d) for d in (1000.0, 2000.0, 3000.0, 4000.0)]
        elevation = MagicMock()
        elevation.sample_along_path.side_effect = [[0, 5], [0, 25], [0, 18], [0, 60]]

        selector = StrategySelector(routing, elevation, early_exit=False, region="us")
        result = selector.evaluate(ORIGIN, DESTINATION, match_strategy, baseline_gain=20)

        assert result.distance == 3000.0

    def test_search_depth_limits_variants(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = NoRoute("no path")
        elevation = MagicMock()

        selector = StrategySelector(routing, elevation, search_depth=2, region="us")
        assert selector.evaluate(ORIGIN, DESTINATION, flat_strategy) is None
        assert routing.route.call_count == 2

    def test_invalid_search_depth(self):
        with pytest.raises(ValueError, match="search_depth"):
            StrategySelector(MagicMock(), MagicMock(), search_depth=0)

    def test_unexpected_errors_propagate(self, flat_strategy):
        routing = MagicMock()
        routing.route.side_effect = KeyError("routes")

        with pytest.raises(KeyError):
            StrategySelector(routing, MagicMock()).evaluate(ORIGIN, DESTINATION, flat_strategy)
