"""zircon: multi-network, bouncer-aware IRC client core."""

__version__ = "0.1.0"
