"""Command-line entry points for bomconvert."""
