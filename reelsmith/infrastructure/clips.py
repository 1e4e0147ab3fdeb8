"""
Adaptador de adquisición de clips.
Busca y descarga un clip por escena (con un único fallback genérico) y lo
normaliza al envelope canónico que necesita el xfade.
"""
import logging
from pathlib import Path
from typing import Optional

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from ..config import PexelsSettings
from ..domain.errors import AcquisitionError
from ..domain.models import ClipAsset, Scene
from ..utils.workspace import JobWorkspace
from ..video.renderer import VideoRenderer
from .pexels import PexelsClient, select_variant

logger = logging.getLogger(__name__)

# Query original + fallback genérico
MAX_ATTEMPTS = 2


class ClipAcquirer:
    """Obtiene y normaliza el clip de cada escena."""

    def __init__(
        self,
        pexels: PexelsClient,
        renderer: VideoRenderer,
        settings: Optional[PexelsSettings] = None,
    ):
        self.pexels = pexels
        self.renderer = renderer
        self.settings = settings or pexels.settings

    def _fetch(self, query: str, scene_index: int, target: Path) -> Path:
        try:
            files = self.pexels.search_videos(query)
            variant = select_variant(files)
            if not variant or not variant.get("link"):
                raise AcquisitionError(
                    f"Sin videos para '{query}'", scene_index=scene_index, query=query
                )
            return self.pexels.download(variant["link"], target)
        except (httpx.HTTPError, OSError) as e:
            raise AcquisitionError(
                f"Error obteniendo '{query}': {e}", scene_index=scene_index, query=query
            ) from e
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # Cuerpo que no es JSON o resultado sin la forma esperada
            raise AcquisitionError(
                f"Respuesta inválida de Pexels para '{query}': {e}",
                scene_index=scene_index,
                query=query,
            ) from e

    def acquire(self, keywords: str, scene_index: int, workspace: JobWorkspace) -> Path:
        """
        Descarga el clip de una escena.

        Primer intento con las keywords de la escena; si falla por cualquier motivo
        se hace exactamente un intento más con la query genérica.

        Args:
            keywords: Búsqueda de la escena
            scene_index: Índice de la escena (nombra el archivo)
            workspace: Espacio de trabajo del job

        Returns:
            Ruta al clip descargado (scene-{i}-raw.mp4)

        Raises:
            AcquisitionError: Si también falla el fallback
        """
        queries = [keywords, self.settings.fallback_query]
        target = workspace.raw_clip(scene_index)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(MAX_ATTEMPTS),
                retry=retry_if_exception_type(AcquisitionError),
                reraise=True,
            ):
                with attempt:
                    number = attempt.retry_state.attempt_number
                    query = queries[number - 1]
                    if number > 1:
                        logger.warning(f"Escena {scene_index}: usando fallback '{query}'")
                    else:
                        logger.info(f"Escena {scene_index}: buscando '{query}'")

                    path = self._fetch(query, scene_index, target)
                    logger.info(f"Escena {scene_index}: descargada ({path.name})")
                    return path
        except AcquisitionError as e:
            raise AcquisitionError(
                f"Escena {scene_index}: sin clip tras fallback ({e})",
                scene_index=scene_index,
                query=e.query,
            ) from e

    def normalize(
        self,
        local_path: Path,
        target_duration: float,
        scene_index: int,
        workspace: JobWorkspace,
    ) -> Path:
        """Re-codifica el clip a scene-{i}-final.mp4 con la duración de la escena."""
        output = workspace.final_clip(scene_index)
        self.renderer.normalize_clip(local_path, target_duration, output)
        return output

    def prepare(self, scene: Scene, scene_index: int, workspace: JobWorkspace) -> ClipAsset:
        """Adquisición + normalización de una escena."""
        raw = self.acquire(scene.keywords, scene_index, workspace)
        final = self.normalize(raw, scene.duration, scene_index, workspace)
        return ClipAsset(
            scene_index=scene_index,
            source_path=raw,
            normalized_path=final,
            duration=scene.duration,
        )
