"""Command-line interface for sketchphylo."""
