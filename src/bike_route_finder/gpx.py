"""GPX export of route options."""

import re

import gpxpy
import gpxpy.gpx

from bike_route_finder.models import RouteOption


def route_option_to_gpx(option: RouteOption, creator: str = "bike-route-finder") -> str:
    """Create a GPX document with one track for a route option.

    Returns:
        GPX XML as a string.
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = creator
    gpx.description = option.description

    track = gpxpy.gpx.GPXTrack(name=option.name, description=_summary(option))
    track.type = "cycling"
    gpx.tracks.append(track)

    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)
    # Elevations only line up with the path when both have one entry per point
    elevations = option.elevations if len(option.elevations) == len(option.path) else [None] * len(option.path)
    for point, elevation in zip(option.path, elevations):
        segment.points.append(gpxpy.gpx.GPXTrackPoint(point.lat, point.lon, elevation=elevation))

    return gpx.to_xml()


def gpx_filename(option: RouteOption) -> str:
    """Filesystem-safe file name for a route option."""
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", option.id).strip("_") or "route"
    return f"{slug}.gpx"


def _summary(option: RouteOption) -> str:
    m = option.metrics
    return (
        f"{option.distance / 1000:.2f} km, +{m.total_gain:.0f} m / -{m.total_loss:.0f} m, "
        f"max grade {m.max_grade:.1f}%"
    )
