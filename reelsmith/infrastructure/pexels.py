"""
Cliente Pexels - Infraestructura
Búsqueda de videos de stock y descarga del archivo elegido.
"""
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from dotenv import load_dotenv

from ..config import PexelsSettings
from ..utils.backoff import RateLimiter, global_rate_limiter

load_dotenv()
logger = logging.getLogger(__name__)


def select_variant(video_files: List[Dict]) -> Optional[Dict]:
    """
    Elige el archivo a descargar:
    HD de 1920 de ancho, si no cualquier HD, si no el primero disponible.
    """
    if not video_files:
        return None

    for f in video_files:
        if f.get("quality") == "hd" and f.get("width") == 1920:
            return f
    for f in video_files:
        if f.get("quality") == "hd":
            return f
    return video_files[0]


class PexelsClient:
    """Cliente para la API de videos de Pexels."""

    BASE_URL = "https://api.pexels.com"

    def __init__(
        self,
        settings: Optional[PexelsSettings] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Inicializa el cliente de Pexels.

        Args:
            settings: Parámetros de búsqueda y timeouts
            api_key: API key (por defecto PEXELS_API_KEY)
            transport: Transporte httpx alternativo (tests)
            rate_limiter: Rate limiter compartido
        """
        self.settings = settings or PexelsSettings()
        self.api_key = api_key or os.getenv("PEXELS_API_KEY")
        self.rate_limiter = rate_limiter or global_rate_limiter

        if not self.api_key:
            logger.warning("PEXELS_API_KEY no configurada. Las búsquedas fallarán.")

        self.client = httpx.Client(
            headers={"Authorization": self.api_key} if self.api_key else {},
            timeout=self.settings.search_timeout,
            follow_redirects=True,
            transport=transport,
        )

    def search_videos(self, query: str) -> List[Dict]:
        """
        Busca videos y devuelve los archivos (variantes) del primer resultado.

        Args:
            query: Término de búsqueda

        Returns:
            Lista de variantes (quality, width, link...). Vacía si no hay resultados.

        Raises:
            httpx.HTTPError: Errores de red, timeout o status HTTP
        """
        self.rate_limiter.wait_if_needed("pexels")

        response = self.client.get(
            f"{self.BASE_URL}/videos/search",
            params={
                "query": query,
                "per_page": self.settings.per_page,
                "orientation": self.settings.orientation,
            },
            timeout=self.settings.search_timeout,
        )
        response.raise_for_status()

        videos = response.json().get("videos", [])
        logger.info(f"Encontrados {len(videos)} videos para: '{query}'")
        if not videos:
            return []

        return videos[0].get("video_files", [])

    def download(self, url: str, target_path: Path) -> Path:
        """
        Descarga un archivo a disco en streaming.

        Raises:
            httpx.HTTPError: Errores de red, timeout o status HTTP
        """
        target_path = Path(target_path)
        target_path.parent.mkdir(parents=True, exist_ok=True)

        with self.client.stream("GET", url, timeout=self.settings.download_timeout) as response:
            response.raise_for_status()
            with open(target_path, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)

        return target_path

    def close(self):
        self.client.close()
