"""Command-line interface for seedplan."""
