"""CampusConnect: campus event discovery and registration."""

__version__ = "0.1.0"
