"""Configuration loading.

Config is merged from two JSON files:
1. ~/.config/bike-route-finder/bike-route-finder.json (global, loaded first)
2. ./bike-route-finder.json (local, overrides global)

Example:
    {
        "google_maps_api_key": "your-api-key",
        "geocoder": "google",
        "search_depth": 4,
        "strategies": [
            {"id": "flat", "objective": "minimize", "waypoints": [[37.77, -122.43]]}
        ]
    }
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from bike_route_finder.strategies import DEFAULT_STRATEGIES, Strategy, strategies_from_config

CONFIG_DIR = Path.home() / ".config" / "bike-route-finder"
CONFIG_PATH = CONFIG_DIR / "bike-route-finder.json"
LOCAL_CONFIG_PATH = Path("bike-route-finder.json")

API_KEY_ENV = "GOOGLE_MAPS_API_KEY"

DEFAULTS = {
    "cache_ttl_seconds": 1800.0,
    "cache_max_size": 256,
    "sample_spacing": 100.0,
    "true_sample_spacing": False,
    "min_samples": 10,
    "max_samples": 100,
    "meters_per_sample": 100.0,
    "search_depth": 4,
    "early_exit": True,
    "max_workers": 4,
    "step_match_tolerance": 0.0,
    "request_timeout": 30.0,
    "geocoder": "google",
    "region": {
        "locality": "San Francisco",
        "administrative_area": "CA",
        "country": "US",
    },
    "routing_region": "us",
}


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    cache_ttl_seconds: float
    cache_max_size: int | None
    sample_spacing: float
    true_sample_spacing: bool
    min_samples: int
    max_samples: int
    meters_per_sample: float
    search_depth: int
    early_exit: bool
    max_workers: int
    step_match_tolerance: float
    request_timeout: float
    geocoder: str
    region: dict
    routing_region: str | None
    strategies: tuple[Strategy, ...]


def _load_config() -> dict:
    """Load configuration from config files.

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_api_key(config: dict) -> str | None:
    """Google Maps API key from config, falling back to the environment."""
    return config.get("google_maps_api_key") or os.environ.get(API_KEY_ENV)


def load_settings(config: dict | None = None, **overrides) -> Settings:
    """Build Settings from config values and overrides.

    Overrides whose value is None are ignored, so unset CLI flags fall
    through to the config file and then DEFAULTS.

    Raises:
        ValueError: If the strategies config is malformed.
    """
    if config is None:
        config = _load_config()
    merged = {**DEFAULTS, **config}
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if "strategies" in merged:
        strategies = strategies_from_config(merged["strategies"])
    else:
        strategies = DEFAULT_STRATEGIES

    return Settings(
        api_key=get_api_key(merged),
        cache_ttl_seconds=float(merged["cache_ttl_seconds"]),
        cache_max_size=merged["cache_max_size"],
        sample_spacing=float(merged["sample_spacing"]),
        true_sample_spacing=bool(merged["true_sample_spacing"]),
        min_samples=int(merged["min_samples"]),
        max_samples=int(merged["max_samples"]),
        meters_per_sample=float(merged["meters_per_sample"]),
        search_depth=int(merged["search_depth"]),
        early_exit=bool(merged["early_exit"]),
        max_workers=int(merged["max_workers"]),
        step_match_tolerance=float(merged["step_match_tolerance"]),
        request_timeout=float(merged["request_timeout"]),
        geocoder=merged["geocoder"],
        region=dict(merged["region"] or {}),
        routing_region=merged["routing_region"],
        strategies=strategies,
    )
