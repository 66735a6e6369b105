"""A tile-based defence game: protect the cake from waves of pests."""

__version__ = "0.1.0"