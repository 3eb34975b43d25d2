"""Plan and journal tracking with commit-backed verification."""

__version__ = "0.1.0"
