"""Focus feed: profile-driven tech content aggregation."""

__version__ = "0.1.0"
