"""Sighting aggregation, scored-cache and batch submission pipeline."""

__version__ = "0.1.0"
