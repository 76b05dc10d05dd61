"""Per-step elevation overlay for turn-by-turn directions.

Each step's sub-path is located inside the full route path by matching its
first and last points. The elevation samples at the matched index range are
then scored on their own. A step whose endpoints cannot be found gets zero
elevation and grade.
"""

import logging
from typing import Sequence

from bike_route_finder.elevation import SAMPLE_SPACING_M, compute_metrics
from bike_route_finder.models import AnnotatedStep, GeoPoint, Step

logger = logging.getLogger(__name__)


def points_match(a: GeoPoint, b: GeoPoint, tolerance: float = 0.0) -> bool:
    """Compare two points, exactly or within a tolerance in degrees."""
    if tolerance <= 0:
        return a == b
    return abs(a.lat - b.lat) <= tolerance and abs(a.lon - b.lon) <= tolerance


def _find_point(path: Sequence[GeoPoint], target: GeoPoint, start: int, tolerance: float) -> int | None:
    for i in range(start, len(path)):
        if points_match(path[i], target, tolerance):
            return i
    return None


def locate_step(
    step: Step,
    path: Sequence[GeoPoint],
    start: int = 0,
    tolerance: float = 0.0,
) -> tuple[int, int] | None:
    """Find the (first, last) indices of a step's endpoints within a path.

    The search begins at `start` and the last point is searched for at or
    after the first one.

    Returns:
        Inclusive index range, or None if either endpoint has no match.
    """
    if not step.path:
        return None
    first = _find_point(path, step.path[0], start, tolerance)
    if first is None:
        return None
    last = _find_point(path, step.path[-1], first, tolerance)
    if last is None:
        return None
    return first, last


def step_grade(gain: float, distance: float) -> float:
    """Average climbing grade of a step in percent."""
    if distance <= 0:
        return 0.0
    return round(gain / distance * 100, 1)


def annotate_steps(
    steps: Sequence[Step],
    path: Sequence[GeoPoint],
    elevations: Sequence[float],
    sample_spacing: float = SAMPLE_SPACING_M,
    tolerance: float = 0.0,
) -> list[AnnotatedStep]:
    """Attach elevation gain and grades to each step of a route.

    Elevation samples are sliced by the path indices matched for the step.

    Args:
        steps: Steps of the route, in order
        path: Full route path
        elevations: Elevation samples for the full route
        sample_spacing: Spacing passed through to compute_metrics
        tolerance: Coordinate tolerance in degrees for endpoint matching;
            0 requires exact equality

    Returns:
        One AnnotatedStep per input step, same order.
    """
    annotated = []
    cursor = 0

    for step in steps:
        span = locate_step(step, path, cursor, tolerance)
        if span is None:
            logger.debug("No path match for step %r, annotating with zero elevation", step.instruction)
            segment: Sequence[float] = []
        else:
            first, last = span
            segment = elevations[first : last + 1]
            cursor = last

        metrics = compute_metrics(segment, sample_spacing)
        annotated.append(
            AnnotatedStep(
                instruction=step.instruction,
                path=step.path,
                distance=step.distance,
                elevation=metrics.total_gain,
                grade=step_grade(metrics.total_gain, step.distance),
                max_grade=metrics.max_grade,
            )
        )

    return annotated
