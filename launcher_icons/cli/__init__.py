"""Command-line interface for launcher-icons."""
