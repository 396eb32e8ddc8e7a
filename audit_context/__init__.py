"""Hybrid retrieval and context building for audit findings."""

__version__ = "0.1.0"
