"""StreamGuard - daily listening goals for music communities."""

__version__ = "0.1.0"
