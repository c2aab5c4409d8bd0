"""Resilient YouTube provider core for the Tunestream music player."""

__version__ = "0.1.0"

__all__ = ["__version__"]
