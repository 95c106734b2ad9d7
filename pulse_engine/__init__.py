"""Trend Pulse: Google Trends feed with social engagement and generated summaries."""

__version__ = "0.1.0"
