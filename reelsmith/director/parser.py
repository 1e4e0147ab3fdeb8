"""
Storyboard Parser
Se encarga de validar y convertir la salida del LLM en objetos de dominio.
"""
import json
import logging
from typing import Any, Dict, Union

from pydantic import ValidationError

from ..domain.errors import StoryboardError
from ..domain.models import Storyboard

logger = logging.getLogger(__name__)


class StoryboardParser:
    """Validador y parseador de storyboards estructurados."""

    MIN_SCENES = 3
    MAX_SCENES = 8

    def parse(self, raw_input: Union[str, Dict[str, Any]]) -> Storyboard:
        """
        Convierte un JSON (string o dict) en un Storyboard validado.

        Raises:
            StoryboardError: JSON inválido o estructura que no cumple el modelo
        """
        try:
            if isinstance(raw_input, str):
                # Limpiar bloques de código markdown si existen
                clean_input = raw_input.replace("```json", "").replace("```", "").strip()
                data = json.loads(clean_input)
            else:
                data = raw_input

            storyboard = Storyboard(**data)

        except json.JSONDecodeError as e:
            logger.error(f"Error decodificando JSON del storyboard: {e}")
            raise StoryboardError("El storyboard no es un JSON válido") from e
        except (ValidationError, TypeError) as e:
            logger.error(f"Storyboard inválido: {e}")
            raise StoryboardError(f"Storyboard inválido: {e}") from e

        self._validate_logic(storyboard)
        return storyboard

    def _validate_logic(self, storyboard: Storyboard):
        """Reglas de negocio extra (solo avisos)."""
        count = len(storyboard.scenes)
        if count < self.MIN_SCENES:
            logger.warning(f"El storyboard es muy corto ({count} escenas).")
        elif count > self.MAX_SCENES:
            logger.warning(f"El storyboard es muy largo ({count} escenas).")

        for i, scene in enumerate(storyboard.scenes):
            if not scene.keywords.strip():
                logger.warning(f"Escena {i} sin keywords: se usará el fallback de búsqueda")
