"""gamifier: multi-page learning activity player core."""

__version__ = "0.1.0"
