import argparse
import json
import logging
import sys
from pathlib import Path

from bike_route_finder.aggregator import DEFAULT_ROUTE_ID
from bike_route_finder.config import _load_config, load_settings
from bike_route_finder.errors import AddressNotFound, NoRoutesFound
from bike_route_finder.finder import build_finder
from bike_route_finder.formatters import format_diff, format_distance, format_elevation
from bike_route_finder.gpx import gpx_filename, route_option_to_gpx
from bike_route_finder.models import RouteOption


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser. Unset options fall back to the config file."""
    parser = argparse.ArgumentParser(
        description="Find bike routes between two addresses and compare their climbing."
    )
    parser.add_argument("start", help="Start address or intersection")
    parser.add_argument("end", help="Destination address or intersection")
    parser.add_argument(
        "--search-depth",
        type=int,
        default=None,
        help="Number of waypoint variants tried per strategy (default: 4)",
    )
    parser.add_argument(
        "--exhaustive",
        action="store_true",
        help="Score every variant instead of stopping at the first usable one",
    )
    parser.add_argument(
        "--true-spacing",
        action="store_true",
        help="Compute grades from actual sample spacing instead of a fixed 100 m",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Strategies evaluated concurrently (default: 4)",
    )
    parser.add_argument(
        "--geocoder",
        choices=["google", "nominatim"],
        default=None,
        help="Geocoding service (default: google)",
    )
    parser.add_argument("--steps", action="store_true", help="Print turn-by-turn steps with grades")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--gpx-dir", type=Path, default=None, help="Write one GPX file per route to this directory")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    return parser


def print_route(index: int, option: RouteOption, baseline: RouteOption | None, show_steps: bool) -> None:
    m = option.metrics
    print(f"{index}. {option.name}")
    if option.description:
        print(f"   {option.description}")
    print(f"   Distance:       {format_distance(option.distance)}")
    gain_line = f"   Elevation Gain: {format_elevation(m.total_gain)}"
    if baseline is not None and baseline is not option:
        gain_line += f"  [{format_diff(m.total_gain, baseline.metrics.total_gain, 'm')} vs default]"
    print(gain_line)
    print(f"   Elevation Loss: {format_elevation(m.total_loss)}")
    print(f"   Max Grade:      {m.max_grade:.1f}%")
    print(f"   Avg Grade:      {m.average_grade:.1f}%")
    if show_steps:
        for step in option.steps:
            print(f"     - {step.instruction} ({step.distance:.0f} m, +{step.elevation:.0f} m, "
                  f"{step.grade:.1f}% avg, {step.max_grade:.1f}% max)")


def write_gpx_files(routes: list[RouteOption], directory: Path) -> list[Path]:
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for option in routes:
        path = directory / gpx_filename(option)
        path.write_text(route_option_to_gpx(option))
        paths.append(path)
    return paths


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        settings = load_settings(
            _load_config(),
            search_depth=args.search_depth,
            max_workers=args.max_workers,
            geocoder=args.geocoder,
            early_exit=False if args.exhaustive else None,
            true_sample_spacing=True if args.true_spacing else None,
        )
        finder = build_finder(settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        routes = finder.find_routes(args.start, args.end)
    except (AddressNotFound, NoRoutesFound) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({"routes": [r.to_dict() for r in routes]}, indent=2))
    else:
        print(f"=== Bike Routes: {args.start} -> {args.end} ===")
        baseline = next((r for r in routes if r.id == DEFAULT_ROUTE_ID), None)
        for i, option in enumerate(routes, start=1):
            print_route(i, option, baseline, args.steps)

    if args.gpx_dir:
        for path in write_gpx_files(routes, args.gpx_dir):
            print(f"Wrote {path}", file=sys.stderr)


if __name__ == "__main__":
    main()
