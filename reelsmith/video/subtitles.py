"""
Generador de subtítulos en formato SRT.
Los tiempos salen de las duraciones acumuladas del storyboard, sin descontar crossfades.
"""

import logging
import math
import re
from pathlib import Path
from typing import Iterable, List, Sequence

from ..domain.errors import SubtitleWriteError
from ..domain.models import Scene, SubtitleCue

logger = logging.getLogger(__name__)

# Comillas y todo lo que no sea ASCII imprimible rompe el quoting del filtro subtitles
_UNSAFE_CHARS = re.compile(r"['\"]|[^\x20-\x7E]")
# Texto de un cue cuya narración queda vacía tras sanitizar (una línea vacía cierra el cue SRT)
CAPTION_PLACEHOLDER = "..."


def sanitize_caption(text: str) -> str:
    """Elimina comillas y caracteres fuera del rango ASCII imprimible."""
    return _UNSAFE_CHARS.sub("", text)


def format_timestamp(seconds: float) -> str:
    """
    Formatea segundos a formato SRT (HH:MM:SS,mmm).
    Los milisegundos se truncan, no se redondean.
    """
    # round() absorbe el ruido binario (0.3 * 1000 = 299.99...) antes de truncar
    total_ms = math.floor(round(max(seconds, 0.0) * 1000, 6))

    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)

    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def build_cues(scenes: Sequence[Scene]) -> List[SubtitleCue]:
    """Un cue por escena, contiguos y en el orden del storyboard."""
    cues = []
    current_time = 0.0

    for i, scene in enumerate(scenes):
        end_time = current_time + scene.duration
        cues.append(SubtitleCue(
            index=i + 1,
            start=current_time,
            end=end_time,
            text=sanitize_caption(scene.narration).strip() or CAPTION_PLACEHOLDER,
        ))
        current_time = end_time

    return cues


def render_srt(cues: Iterable[SubtitleCue]) -> str:
    """Serializa los cues a texto SRT."""
    blocks = []
    for cue in cues:
        blocks.append(
            f"{cue.index}\n"
            f"{format_timestamp(cue.start)} --> {format_timestamp(cue.end)}\n"
            f"{cue.text}\n\n"
        )
    return "".join(blocks)


class SubtitleGenerator:
    """Escribe el archivo de subtítulos de un render y verifica que quedó en disco."""

    def write(self, scenes: Sequence[Scene], path: Path) -> Path:
        """
        Genera y escribe el SRT.

        Args:
            scenes: Escenas del storyboard
            path: Ruta de destino

        Returns:
            Ruta al archivo escrito

        Raises:
            SubtitleWriteError: Si el archivo no pudo escribirse o no existe tras escribirlo
        """
        path = Path(path)
        cues = build_cues(scenes)
        content = render_srt(cues)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error escribiendo subtítulos en {path}: {e}")
            raise SubtitleWriteError(f"No se pudo escribir {path}: {e}") from e

        if not path.is_file() or path.stat().st_size == 0:
            raise SubtitleWriteError(f"Archivo de subtítulos no verificado: {path}")

        logger.info(f"Subtítulos creados: {path} ({len(cues)} cues)")
        logger.debug(f"Preview subtítulos: {content[:200]!r}")
        return path
