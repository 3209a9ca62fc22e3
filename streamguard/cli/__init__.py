"""Command line interface for StreamGuard."""
