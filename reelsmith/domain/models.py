"""
Modelos de Dominio
Definen la estructura de datos central del sistema.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from ..utils.workspace import JobWorkspace
    from ..video.timeline import Timeline


class Scene(BaseModel):
    """
    Una unidad atómica de narrativa audiovisual.
    El orden dentro del storyboard define su posición en el timeline.
    """
    model_config = ConfigDict(frozen=True)

    duration: float = Field(..., gt=0, description="Duración de la escena en segundos")
    narration: str = Field(..., min_length=1, description="Texto que se narra en esta escena")
    keywords: str = Field(..., description="Términos de búsqueda para el clip de stock")

    @field_validator("keywords", mode="before")
    @classmethod
    def _join_keywords(cls, value):
        # Los LLM a veces devuelven una lista de keywords
        if isinstance(value, (list, tuple)):
            return " ".join(str(v).strip() for v in value if str(v).strip())
        return value

    @field_validator("narration")
    @classmethod
    def _strip_narration(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("La narración no puede estar vacía")
        return value


class Storyboard(BaseModel):
    """El guión completo estructurado en escenas. Inmutable una vez creado."""
    model_config = ConfigDict(frozen=True)

    title: str
    scenes: List[Scene] = Field(..., min_length=1)

    @property
    def total_duration(self) -> float:
        return sum(s.duration for s in self.scenes)

    @property
    def narration_text(self) -> str:
        """Narración completa, tal como se envía al TTS en una sola petición."""
        return " ".join(s.narration for s in self.scenes)

    @property
    def durations(self) -> List[float]:
        return [s.duration for s in self.scenes]


@dataclass
class ClipAsset:
    """Clip de una escena: descarga original y versión normalizada."""
    scene_index: int
    source_path: Path
    normalized_path: Path
    duration: float


@dataclass
class VoiceTrack:
    """Pista de voz sintetizada. Su duración NO tiene por qué coincidir con el storyboard."""
    path: Path
    duration: float


@dataclass(frozen=True)
class SubtitleCue:
    index: int
    start: float
    end: float
    text: str


@dataclass
class RenderJob:
    """Agregado raíz de un render: vive desde el inicio del pipeline hasta la limpieza."""
    job_id: str
    storyboard: Storyboard
    workspace: "JobWorkspace"
    output_path: Path
    clips: List[ClipAsset] = field(default_factory=list)
    voice: Optional[VoiceTrack] = None
    timeline: Optional["Timeline"] = None

    @property
    def clip_paths(self) -> List[Path]:
        return [c.normalized_path for c in sorted(self.clips, key=lambda c: c.scene_index)]
