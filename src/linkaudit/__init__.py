"""Concurrent external link health checker."""

__version__ = "0.1.0"
