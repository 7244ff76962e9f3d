"""Bike-share station traffic by time of day."""

__version__ = "0.1.0"
