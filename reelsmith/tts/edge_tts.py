"""
Motor Edge-TTS para generación de voz.
Usa voces neurales de Microsoft Edge - rápido, estable, gratuito.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..config import TTSSettings
from ..domain.errors import SynthesisError
from .base import BaseTTSEngine

logger = logging.getLogger(__name__)

VOICES = {
    "en-US-GuyNeural": "Guy (Estados Unidos, masculino)",
    "en-US-JennyNeural": "Jenny (Estados Unidos, femenino)",
    "en-GB-RyanNeural": "Ryan (Reino Unido, masculino)",
    "es-CO-GonzaloNeural": "Gonzalo (Colombia, masculino)",
    "es-CL-LorenzoNeural": "Lorenzo (Chile, masculino)",
    "es-MX-DaliaNeural": "Dalia (México, femenino)",
}


class EdgeTTSEngine(BaseTTSEngine):
    """Motor de Text-to-Speech usando Edge-TTS (Microsoft Neural Voices)."""

    name = "Edge-TTS"

    def __init__(
        self,
        settings: Optional[TTSSettings] = None,
        rate: str = "+0%",
        pitch: str = "+0Hz"
    ):
        """
        Args:
            settings: Configuración TTS (usa edge_voice y speed)
            rate: Velocidad del habla (ej: "+10%", "-5%"); si speed != 1.0 se deriva de ahí
            pitch: Tono de voz (ej: "+5Hz", "-10Hz")
        """
        self.settings = settings or TTSSettings()
        self.voice = self.settings.edge_voice
        self.rate = rate
        if self.settings.speed != 1.0:
            self.rate = f"{round((self.settings.speed - 1.0) * 100):+d}%"
        self.pitch = pitch

        if self.voice not in VOICES:
            logger.warning(f"Voz no listada: {self.voice}")

    async def _synthesize_async(self, text: str, output_path: str) -> None:
        import edge_tts

        communicate = edge_tts.Communicate(
            text=text,
            voice=self.voice,
            rate=self.rate,
            pitch=self.pitch
        )
        await communicate.save(output_path)

    def _generate(self, text: str, output_path: Path) -> None:
        try:
            asyncio.run(self._synthesize_async(text, str(output_path)))
        except Exception as e:
            # edge-tts no expone una jerarquía de errores estable
            logger.error(f"Error en Edge-TTS: {e}")
            raise SynthesisError(f"Edge-TTS falló: {e}") from e

    @staticmethod
    def list_voices() -> dict:
        return VOICES
