"""Utility helpers shared across Tunestream modules."""
