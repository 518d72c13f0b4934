"""Nearest-floodplain distance lines for point features (e.g., Houston community centers)."""

__version__ = "0.1.0"
