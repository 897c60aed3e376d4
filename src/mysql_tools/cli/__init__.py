"""Command-line interface for MySQL Tools."""
