"""Pick the neighborhood that best represents a batch of points of interest."""

__version__ = "0.1.0"
