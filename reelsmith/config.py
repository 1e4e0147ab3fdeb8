"""
Configuración del pipeline.
Valores por defecto en código, overrides en config/config.yaml y secretos en .env.
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./config/config.yaml"


class VideoSettings(BaseModel):
    """Envelope canónico al que se normalizan todos los clips."""
    width: int = 1920
    height: int = 1080
    fps: int = 30
    codec: str = "libx264"
    pix_fmt: str = "yuv420p"
    normalize_preset: str = "fast"
    preset: str = "medium"
    crf: int = 23


class TransitionSettings(BaseModel):
    fade: float = Field(0.5, gt=0)
    name: str = "fade"  # transición de xfade


class SubtitleStyle(BaseModel):
    """
    Estilo de los subtítulos quemados (force_style de libass).
    Es un contrato con el renderer: cambiarlo cambia el resultado visual.
    """
    font_name: str = "Arial"
    font_size: int = 28
    primary_colour: str = "&HFFFFFF"
    outline_colour: str = "&H000000"
    outline: int = 2
    alignment: int = 2  # centrado abajo
    margin_v: int = 50

    def force_style(self) -> str:
        return (
            f"FontName={self.font_name},"
            f"FontSize={self.font_size},"
            f"PrimaryColour={self.primary_colour},"
            f"OutlineColour={self.outline_colour},"
            f"Outline={self.outline},"
            f"Alignment={self.alignment},"
            f"MarginV={self.margin_v}"
        )


class AudioSettings(BaseModel):
    codec: str = "aac"
    bitrate: str = "192k"


class PexelsSettings(BaseModel):
    fallback_query: str = "abstract colorful motion"
    per_page: int = 15
    orientation: Literal["landscape", "portrait", "square"] = "landscape"
    search_timeout: float = 10.0
    download_timeout: float = 30.0


class TTSSettings(BaseModel):
    engine: Literal["openai", "edge"] = "openai"
    model: str = "tts-1-hd"
    voice: str = "onyx"
    speed: float = 1.0
    edge_voice: str = "en-US-GuyNeural"


class LLMSettings(BaseModel):
    model: str = "gpt-4-turbo-preview"
    temperature: float = 0.7
    prompts_path: str = "./config/prompts.yaml"


class PathSettings(BaseModel):
    temp_dir: str = "./temp"
    output_dir: str = "./output"


class Settings(BaseModel):
    """Configuración completa de un render."""
    video: VideoSettings = Field(default_factory=VideoSettings)
    transition: TransitionSettings = Field(default_factory=TransitionSettings)
    subtitles: SubtitleStyle = Field(default_factory=SubtitleStyle)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    pexels: PexelsSettings = Field(default_factory=PexelsSettings)
    tts: TTSSettings = Field(default_factory=TTSSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    paths: PathSettings = Field(default_factory=PathSettings)
    max_parallel_clips: int = Field(3, ge=1)
    hw_accel: Literal["none", "auto", "qsv"] = "none"


def load_settings(path: Optional[str] = DEFAULT_CONFIG_PATH) -> Settings:
    """
    Carga la configuración desde YAML. Si el archivo no existe se usan los defaults.

    Args:
        path: Ruta al archivo config.yaml

    Returns:
        Settings validados
    """
    data = {}
    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Archivo de configuración no encontrado: {path}. Usando defaults")

    settings = Settings(**data)

    engine = os.getenv("REELSMITH_TTS_ENGINE")
    if engine:
        settings.tts = TTSSettings(**{**settings.tts.model_dump(), "engine": engine})

    return settings
