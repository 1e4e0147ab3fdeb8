"""
Motor TTS de OpenAI (audio.speech).
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError

from ..config import TTSSettings
from ..domain.errors import SynthesisError
from ..utils.backoff import global_rate_limiter
from .base import BaseTTSEngine

load_dotenv()
logger = logging.getLogger(__name__)

VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


class OpenAITTSEngine(BaseTTSEngine):
    """Text-to-Speech con los modelos tts-1 / tts-1-hd."""

    name = "OpenAI TTS"

    def __init__(self, settings: Optional[TTSSettings] = None, client: Optional[OpenAI] = None):
        """
        Args:
            settings: Modelo, voz y velocidad
            client: Cliente OpenAI ya construido (por defecto usa OPENAI_API_KEY)
        """
        self.settings = settings or TTSSettings()
        if self.settings.voice not in VOICES:
            logger.warning(f"Voz no reconocida: {self.settings.voice}")

        if client is not None:
            self.client = client
        elif os.getenv("OPENAI_API_KEY"):
            self.client = OpenAI(
                api_key=os.getenv("OPENAI_API_KEY"),
                base_url=os.getenv("OPENAI_BASE_URL") or None,
            )
        else:
            logger.warning("OPENAI_API_KEY no configurada")
            self.client = None

    def _generate(self, text: str, output_path: Path) -> None:
        if self.client is None:
            raise SynthesisError("Cliente OpenAI no configurado")

        global_rate_limiter.wait_if_needed("openai")

        try:
            response = self.client.audio.speech.create(
                model=self.settings.model,
                voice=self.settings.voice,
                input=text,
                speed=self.settings.speed,
                response_format="mp3",
            )
        except OpenAIError as e:
            logger.error(f"Error en OpenAI TTS: {e}")
            raise SynthesisError(f"OpenAI TTS falló: {e}") from e

        data = response.content
        if not data:
            raise SynthesisError("OpenAI TTS devolvió audio vacío")

        output_path.write_bytes(data)
