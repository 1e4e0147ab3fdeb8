"""
Espacio de trabajo por job.
Todos los archivos intermedios viven en temp_dir/<job_id>/ con nombres fijos
por índice de escena, así dos jobs concurrentes nunca colisionan.
"""

import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    """Timestamp + sufijo aleatorio (ej: 20261018_190512_a1b2c3)."""
    return f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"


class JobWorkspace:
    """Nombra, registra y limpia los archivos de un render."""

    CLIP_EXT = "mp4"
    VOICE_EXT = "mp3"
    SUBTITLE_EXT = "srt"

    def __init__(self, temp_dir: str, output_dir: str, job_id: Optional[str] = None):
        """
        Args:
            temp_dir: Directorio raíz de temporales
            output_dir: Directorio de videos finales
            job_id: Identificador del job (se genera si es None)
        """
        self.job_id = job_id or new_job_id()
        self.root = Path(temp_dir) / self.job_id
        self.output_dir = Path(output_dir)
        self._files: Set[Path] = set()
        self._lock = threading.Lock()

    def create(self) -> "JobWorkspace":
        self.root.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self

    def _register(self, name: str) -> Path:
        path = self.root / name
        with self._lock:
            self._files.add(path)
        return path

    def raw_clip(self, scene_index: int) -> Path:
        return self._register(f"scene-{scene_index}-raw.{self.CLIP_EXT}")

    def final_clip(self, scene_index: int) -> Path:
        return self._register(f"scene-{scene_index}-final.{self.CLIP_EXT}")

    @property
    def voiceover(self) -> Path:
        return self._register(f"voiceover.{self.VOICE_EXT}")

    @property
    def subtitles(self) -> Path:
        return self._register(f"subtitles.{self.SUBTITLE_EXT}")

    @property
    def output_path(self) -> Path:
        # El video final no es temporal: no se registra para limpieza
        return self.output_dir / f"{self.job_id}.{self.CLIP_EXT}"

    @property
    def registered_files(self) -> List[Path]:
        with self._lock:
            return sorted(self._files)

    def cleanup(self) -> int:
        """
        Borra todos los archivos de trabajo del job y su directorio si quedó vacío.

        Returns:
            Número de archivos eliminados
        """
        removed = 0
        for path in self.registered_files:
            try:
                if path.exists():
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning(f"No se pudo borrar {path}: {e}")

        try:
            if self.root.exists() and not any(self.root.iterdir()):
                self.root.rmdir()
        except OSError as e:
            logger.warning(f"No se pudo borrar {self.root}: {e}")

        logger.info(f"Limpieza del job {self.job_id}: {removed} archivos eliminados")
        return removed
