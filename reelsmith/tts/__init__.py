"""Motores de síntesis de voz."""

from typing import Optional

from ..config import TTSSettings
from .base import BaseTTSEngine, clean_text_for_tts, measure_duration
from .edge_tts import EdgeTTSEngine
from .openai_tts import OpenAITTSEngine


def create_tts_engine(settings: Optional[TTSSettings] = None) -> BaseTTSEngine:
    """Instancia el motor configurado ('openai' o 'edge')."""
    settings = settings or TTSSettings()
    if settings.engine == "edge":
        return EdgeTTSEngine(settings)
    return OpenAITTSEngine(settings)


__all__ = [
    "BaseTTSEngine", "EdgeTTSEngine", "OpenAITTSEngine",
    "clean_text_for_tts", "measure_duration", "create_tts_engine",
]
