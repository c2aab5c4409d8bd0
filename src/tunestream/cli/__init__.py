"""Command-line interface package for Tunestream."""

from tunestream.cli.main import CLIApplication, create_app

__all__ = ["CLIApplication", "create_app"]
