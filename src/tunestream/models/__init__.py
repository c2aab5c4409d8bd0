"""Domain and provider payload models for Tunestream."""
