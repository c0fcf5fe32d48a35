"""cratescope - Discogs collection rarity analysis and catalog search."""

__version__ = "0.1.0"
