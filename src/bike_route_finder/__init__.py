"""Bike Route Finder - elevation-aware cycling route selection."""

__version_date__ = "2025-06-02"
