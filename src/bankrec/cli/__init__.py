"""Command-line interface for bankrec."""
