"""Command-line interface for debquery."""
