"""
Base común de los motores de voz.
Limpieza de texto, verificación del audio y medición de duración.
"""

import logging
import re
from pathlib import Path

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from ..domain.errors import SynthesisError
from ..domain.models import VoiceTrack

logger = logging.getLogger(__name__)

_EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\U00002702-\U000027B0"
    "\U000024C2-\U0001F251"
    "]+",
    flags=re.UNICODE,
)


def clean_text_for_tts(text: str) -> str:
    """
    Limpia texto para síntesis TTS, removiendo elementos problemáticos.
    """
    # URLs, menciones y hashtags
    text = re.sub(r'https?://\S+', '', text)
    text = re.sub(r'www\.\S+', '', text)
    text = re.sub(r'[@#]\w+', '', text)

    text = _EMOJI_PATTERN.sub('', text)

    # Markdown y similares
    text = re.sub(r'[*_~`|<>{}[\]\\]', '', text)

    # Normalizar espacios y puntuación repetida
    text = re.sub(r'\s+', ' ', text)
    text = re.sub(r'[.]{2,}', '.', text)
    text = re.sub(r'[!]{2,}', '!', text)
    text = re.sub(r'[?]{2,}', '?', text)

    return text.strip()


def measure_duration(audio_path: Path) -> float:
    """Duración real del audio en segundos."""
    try:
        audio = AudioSegment.from_file(str(audio_path))
    except (CouldntDecodeError, OSError) as e:
        raise SynthesisError(f"No se pudo leer el audio generado: {e}") from e
    return len(audio) / 1000.0


class BaseTTSEngine:
    """
    Interfaz de los motores de voz.
    Las subclases implementan _generate(text, output_path).
    """

    name = "base"

    def _generate(self, text: str, output_path: Path) -> None:
        raise NotImplementedError

    def synthesize(self, text: str, output_path: Path) -> VoiceTrack:
        """
        Sintetiza la narración completa en una sola petición.

        Args:
            text: Narración completa
            output_path: Ruta del archivo de audio

        Returns:
            VoiceTrack con la duración medida

        Raises:
            SynthesisError: Texto vacío, fallo del motor o audio vacío
        """
        text = clean_text_for_tts(text)
        if not text:
            raise SynthesisError("Texto vacío después de limpieza")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Sintetizando voz con {self.name} ({len(text)} caracteres)...")
        self._generate(text, output_path)

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise SynthesisError(f"{self.name} devolvió audio vacío")

        duration = measure_duration(output_path)
        if duration <= 0:
            raise SynthesisError(f"{self.name} devolvió audio sin duración")

        logger.info(f"Voz generada: {output_path.name} ({duration:.2f}s)")
        return VoiceTrack(path=output_path, duration=duration)
