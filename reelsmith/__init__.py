"""reelsmith: prompt → video narrado con clips de stock."""

__version__ = "0.1.0"
