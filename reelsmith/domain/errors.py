"""
Errores del pipeline de renderizado.
Cada etapa lanza su propio tipo; el orquestador los registra, limpia y re-lanza.
"""
from typing import Optional


class RenderError(Exception):
    """Error genérico del pipeline de video."""
    pass


class InvalidTimelineError(RenderError):
    """La duración de alguna escena no admite el crossfade configurado."""
    pass


class AcquisitionError(RenderError):
    """No se pudo obtener un clip para una escena (fallback agotado)."""

    def __init__(self, message: str, scene_index: Optional[int] = None, query: Optional[str] = None):
        super().__init__(message)
        self.scene_index = scene_index
        self.query = query


class SubtitleWriteError(RenderError):
    """El archivo de subtítulos no pudo escribirse o verificarse."""
    pass


class EncodeError(RenderError):
    """FFmpeg reportó un fallo."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class SynthesisError(RenderError):
    """La síntesis de voz falló o devolvió audio vacío."""
    pass


class StoryboardError(RenderError):
    """El LLM no devolvió un storyboard utilizable."""
    pass
