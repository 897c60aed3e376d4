"""CLI commands for MySQL Tools."""
