"""Service layer for StreamGuard."""
