"""Data-access and aggregation layer for the DEGN admin dashboard."""

__version__ = "0.1.0"
