"""Elevation metrics derived from sampled elevation profiles."""

import math
from typing import Sequence

from bike_route_finder.errors import ProviderError
from bike_route_finder.models import ElevationMetrics

# Horizontal distance assumed between consecutive samples when computing grade
SAMPLE_SPACING_M = 100.0

# Sampling density for the elevation provider
MIN_SAMPLES = 10
MAX_SAMPLES = 100
METERS_PER_SAMPLE = 100.0


def compute_metrics(samples: Sequence[float], sample_spacing: float = SAMPLE_SPACING_M) -> ElevationMetrics:
    """Compute gain, loss and grade statistics for an elevation profile.

    Grade between consecutive samples is abs(diff / sample_spacing) * 100.
    The average grade is the arithmetic mean over sample pairs, not weighted
    by distance.

    Args:
        samples: Elevations in meters, in travel order
        sample_spacing: Horizontal distance between samples in meters

    Returns:
        ElevationMetrics with gain/loss rounded to whole meters and grades
        rounded to one decimal. All zero for fewer than two samples.
    """
    if len(samples) < 2:
        return ElevationMetrics()

    gain = 0.0
    loss = 0.0
    max_grade = 0.0
    grade_sum = 0.0

    for i in range(1, len(samples)):
        diff = samples[i] - samples[i - 1]
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)

        grade = abs(diff / sample_spacing) * 100
        if grade > max_grade:
            max_grade = grade
        grade_sum += grade

    average_grade = grade_sum / (len(samples) - 1)

    return ElevationMetrics(
        total_gain=_whole_meters(gain),
        total_loss=_whole_meters(loss),
        max_grade=round(max_grade, 1),
        average_grade=round(average_grade, 1),
    )


def _whole_meters(value: float) -> float:
    # NaN totals pass through unrounded
    return round(value) if math.isfinite(value) else value


def sample_count_for_distance(
    distance: float,
    min_samples: int = MIN_SAMPLES,
    max_samples: int = MAX_SAMPLES,
    meters_per_sample: float = METERS_PER_SAMPLE,
) -> int:
    """Number of elevation samples to request for a path of the given length."""
    target = math.ceil(distance / meters_per_sample) if distance > 0 else 0
    return max(min_samples, min(max_samples, target))


def true_sample_spacing(distance: float, sample_count: int) -> float:
    """Actual distance between evenly spaced samples along a path.

    Falls back to SAMPLE_SPACING_M when the spacing is undefined.
    """
    if sample_count < 2 or distance <= 0:
        return SAMPLE_SPACING_M
    return distance / (sample_count - 1)


def validate_samples(samples: Sequence[float]) -> list[float]:
    """Check elevation samples from a provider before computing metrics.

    Raises:
        ProviderError: If any sample is missing or not a finite number.
    """
    values = []
    for i, sample in enumerate(samples):
        if sample is None or isinstance(sample, bool):
            raise ProviderError(f"Missing elevation sample at index {i}")
        try:
            value = float(sample)
        except (TypeError, ValueError):
            raise ProviderError(f"Invalid elevation sample at index {i}: {sample!r}")
        if not math.isfinite(value):
            raise ProviderError(f"Non-finite elevation sample at index {i}: {sample!r}")
        values.append(value)
    return values
