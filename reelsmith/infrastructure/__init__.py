"""Adaptadores de servicios externos (stock footage)."""

from .pexels import PexelsClient, select_variant
from .clips import ClipAcquirer

__all__ = ["PexelsClient", "select_variant", "ClipAcquirer"]
