"""JSON API for route queries."""

import logging
import os
from threading import Lock

from flask import Flask, jsonify, request

from bike_route_finder import __version_date__
from bike_route_finder.config import load_settings
from bike_route_finder.errors import AddressNotFound, NoRoutesFound
from bike_route_finder.finder import RouteFinder, build_finder

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Shared finder (and its result cache), built on first request
_finder: RouteFinder | None = None
_finder_lock = Lock()


def get_finder() -> RouteFinder:
    global _finder
    with _finder_lock:
        if _finder is None:
            _finder = build_finder(load_settings())
        return _finder


@app.route("/api/routes")
def api_routes():
    """Find scored route options between two addresses.

    Query parameters: start, end (address text).
    """
    start = request.args.get("start", "").strip()
    end = request.args.get("end", "").strip()
    if not start or not end:
        return jsonify({"error": "Both start and end are required"}), 400

    try:
        finder = get_finder()
    except ValueError as e:
        return jsonify({"error": str(e)}), 500

    try:
        routes = finder.find_routes(start, end)
    except (AddressNotFound, NoRoutesFound) as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "start": start,
        "end": end,
        "routes": [r.to_dict() for r in routes],
    })


@app.route("/cache-stats")
def cache_stats():
    """Return result cache statistics as JSON."""
    try:
        finder = get_finder()
    except ValueError as e:
        return jsonify({"error": str(e)}), 500
    return {"route_cache": finder.cache.stats()}


@app.route("/cache-clear", methods=["GET", "POST"])
def cache_clear():
    """Clear the result cache."""
    try:
        finder = get_finder()
    except ValueError as e:
        return jsonify({"error": str(e)}), 500
    cleared = finder.cache.clear()
    return {
        "status": "ok",
        "message": f"Caches cleared: routes ({cleared})",
    }


@app.route("/health")
def health():
    return {"status": "ok", "version": __version_date__}


def main():
    """Run the web server."""
    port = int(os.environ.get("PORT", 5050))
    print("Starting Bike Route Finder API server...")
    print(f"Open http://localhost:{port}/api/routes?start=...&end=... in your browser")
    app.run(host="0.0.0.0", port=port, debug=True)


if __name__ == "__main__":
    main()
