"""Score a routing candidate against its sampled elevation profile."""

import logging
from dataclasses import dataclass

from bike_route_finder.distance import path_length
from bike_route_finder.elevation import (
    MAX_SAMPLES,
    METERS_PER_SAMPLE,
    MIN_SAMPLES,
    SAMPLE_SPACING_M,
    compute_metrics,
    sample_count_for_distance,
    true_sample_spacing,
    validate_samples,
)
from bike_route_finder.errors import ProviderError
from bike_route_finder.models import Candidate, ElevationMetrics, RouteOption
from bike_route_finder.providers import ElevationProvider
from bike_route_finder.steps import annotate_steps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringConfig:
    sample_spacing: float = SAMPLE_SPACING_M  # meters; used unless true_spacing
    true_spacing: bool = False  # derive spacing from distance / (samples - 1)
    min_samples: int = MIN_SAMPLES
    max_samples: int = MAX_SAMPLES
    meters_per_sample: float = METERS_PER_SAMPLE
    step_match_tolerance: float = 0.0  # degrees


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    distance: float  # meters
    elevations: tuple[float, ...]
    metrics: ElevationMetrics
    sample_spacing: float  # meters


def score_candidate(
    candidate: Candidate,
    elevation: ElevationProvider,
    config: ScoringConfig | None = None,
) -> ScoredCandidate:
    """Sample elevation along a candidate and compute its whole-route metrics.

    Raises:
        ProviderTransientError: If the elevation provider fails or returns
            unusable samples.
    """
    config = config or ScoringConfig()
    if not candidate.path:
        raise ProviderError("Candidate route has an empty path")

    distance = candidate.distance
    if distance <= 0:
        distance = path_length(candidate.path)

    count = sample_count_for_distance(
        distance, config.min_samples, config.max_samples, config.meters_per_sample
    )
    samples = validate_samples(elevation.sample_along_path(candidate.path, count))
    if len(samples) != count:
        logger.debug("Requested %d elevation samples, received %d", count, len(samples))

    if config.true_spacing:
        spacing = true_sample_spacing(distance, len(samples))
    else:
        spacing = config.sample_spacing

    return ScoredCandidate(
        candidate=candidate,
        distance=distance,
        elevations=tuple(samples),
        metrics=compute_metrics(samples, spacing),
        sample_spacing=spacing,
    )


def build_route_option(
    scored: ScoredCandidate,
    option_id: str,
    name: str,
    description: str,
    config: ScoringConfig | None = None,
) -> RouteOption:
    """Annotate a scored candidate's steps and package it as a RouteOption."""
    config = config or ScoringConfig()
    candidate = scored.candidate
    steps = annotate_steps(
        candidate.steps,
        candidate.path,
        scored.elevations,
        sample_spacing=scored.sample_spacing,
        tolerance=config.step_match_tolerance,
    )
    return RouteOption(
        id=option_id,
        name=name,
        description=description,
        path=candidate.path,
        steps=tuple(steps),
        metrics=scored.metrics,
        distance=scored.distance,
        elevations=scored.elevations,
    )
