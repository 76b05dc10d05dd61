"""Formatting utilities for display."""

KM_TO_MI = 0.621371
M_TO_FT = 3.28084


def format_distance(meters: float) -> str:
    """Format meters as km with miles in parentheses."""
    km = meters / 1000
    return f"{km:.2f} km ({km * KM_TO_MI:.2f} mi)"


def format_elevation(meters: float) -> str:
    """Format meters with feet in parentheses."""
    return f"{meters:.0f} m ({meters * M_TO_FT:.0f} ft)"


def format_diff(val1: float, val2: float, unit: str, decimals: int = 0) -> str:
    """Format numeric difference with sign and unit."""
    diff = val1 - val2
    sign = "+" if diff > 0 else ""
    if decimals == 0:
        return f"{sign}{diff:.0f} {unit}"
    return f"{sign}{diff:.{decimals}f} {unit}"
