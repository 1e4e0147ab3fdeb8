"""
Cálculo del timeline con crossfades.
Cada transición se come `fade` segundos de la cola del clip anterior.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

from ..domain.errors import InvalidTimelineError

DEFAULT_FADE = 0.5


@dataclass(frozen=True)
class Timeline:
    """Timeline derivado (no se persiste)."""
    durations: Tuple[float, ...]
    fade: float
    offsets: Tuple[float, ...]
    scene_starts: Tuple[float, ...]
    scene_ends: Tuple[float, ...]
    effective_duration: float

    @property
    def clip_count(self) -> int:
        return len(self.durations)

    @property
    def nominal_duration(self) -> float:
        """Suma de duraciones sin descontar solapamientos."""
        return sum(self.durations)


def compute_timeline(durations: Sequence[float], fade: float = DEFAULT_FADE) -> Timeline:
    """
    Calcula offsets de xfade y duración efectiva.

    offsets[0] = d[0] - fade
    offsets[i] = offsets[i-1] + d[i] - fade

    Args:
        durations: Duraciones por escena, en orden
        fade: Duración del crossfade en segundos

    Returns:
        Timeline con offsets, inicio/fin por escena y duración efectiva

    Raises:
        InvalidTimelineError: Si no hay escenas, fade <= 0 o alguna escena dura <= fade
    """
    durations = tuple(float(d) for d in durations)

    if not durations:
        raise InvalidTimelineError("El timeline no tiene escenas")
    if fade <= 0:
        raise InvalidTimelineError(f"El fade debe ser positivo (recibido {fade})")

    for i, d in enumerate(durations):
        if d <= fade:
            raise InvalidTimelineError(
                f"Escena {i} dura {d}s, debe ser mayor que el fade de {fade}s"
            )

    offsets = []
    offset = 0.0
    for i, d in enumerate(durations[:-1]):
        offset = d - fade if i == 0 else offset + d - fade
        offsets.append(offset)

    starts = (0.0, *offsets)
    ends = tuple(start + d for start, d in zip(starts, durations))

    return Timeline(
        durations=durations,
        fade=fade,
        offsets=tuple(offsets),
        scene_starts=starts,
        scene_ends=ends,
        effective_duration=sum(durations) - (len(durations) - 1) * fade,
    )


def effective_duration(durations: Sequence[float], fade: float = DEFAULT_FADE) -> float:
    """Duración total del video una vez descontados los crossfades."""
    return compute_timeline(durations, fade).effective_duration
