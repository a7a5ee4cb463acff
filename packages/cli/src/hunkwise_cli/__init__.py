"""Command line interface for hunkwise."""
