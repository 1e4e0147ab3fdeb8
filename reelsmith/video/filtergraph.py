"""
Grafo de filtros de FFmpeg.

El grafo se construye como estructura (filtros, cadenas y labels) y se serializa
a la sintaxis de -filter_complex en un único lugar: escape_value() + FilterGraph.render().
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Dict, List, Sequence, Tuple

from ..config import SubtitleStyle
from .timeline import Timeline

VIDEO_LABEL = "v"
AUDIO_LABEL = "audio"

# Labels de streams de entrada: "0:v", "3:a"
_INPUT_STREAM = re.compile(r"^\d+:[va]$")
# Metacaracteres del parser de filtergraph
_SPECIAL = set("[],;:='\\ ")


def format_number(value: float) -> str:
    """Hasta 6 decimales, sin ceros sobrantes (12.0 -> '12', 5.5 -> '5.5')."""
    if isinstance(value, int):
        return str(value)
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


# ffmpeg desescapa dos veces (grafo y luego opciones del filtro): una comilla
# literal sale de las comillas y llega al segundo nivel como \'
_QUOTE_ESCAPE = "'\\\\\\''"


def _quote(text: str) -> str:
    return "'" + text.replace("'", _QUOTE_ESCAPE) + "'"


def escape_path(path: PurePath) -> str:
    """Ruta para opciones de filtro: separadores '/', ':' escapado y entre comillas simples."""
    text = path.as_posix().replace("\\", "/")
    return _quote(text.replace(":", "\\:"))


def escape_value(value: Any) -> str:
    """Serializa el valor de un argumento de filtro."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, PurePath):
        return escape_path(value)

    text = str(value)
    if any(c in _SPECIAL for c in text):
        return _quote(text)
    return text


@dataclass
class Filter:
    """Un filtro: nombre, argumentos posicionales y opciones con nombre."""
    name: str
    args: Tuple[Any, ...] = ()
    options: Dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        parts = [escape_value(a) for a in self.args]
        parts += [f"{key}={escape_value(val)}" for key, val in self.options.items()]
        if not parts:
            return self.name
        return f"{self.name}=" + ":".join(parts)


@dataclass
class FilterChain:
    """Cadena lineal de filtros entre labels de entrada y salida."""
    inputs: List[str]
    filters: List[Filter]
    outputs: List[str]

    def render(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return ins + ",".join(f.render() for f in self.filters) + outs


class FilterGraph:
    """
    Grafo dirigido de cadenas.
    Cada label intermedio debe producirse antes de consumirse, y consumirse una sola vez.
    """

    def __init__(self):
        self.chains: List[FilterChain] = []
        self._produced: Dict[str, bool] = {}  # label -> ya consumido
        self._consumed_inputs: set = set()

    def add(self, inputs: Sequence[str], filters: Sequence[Filter], outputs: Sequence[str]) -> FilterChain:
        if not filters:
            raise ValueError("Una cadena necesita al menos un filtro")

        for label in inputs:
            if _INPUT_STREAM.match(label):
                if label in self._consumed_inputs:
                    raise ValueError(f"Stream de entrada [{label}] usado dos veces")
                self._consumed_inputs.add(label)
                continue
            if label not in self._produced:
                raise ValueError(f"Label [{label}] consumido antes de producirse")
            if self._produced[label]:
                raise ValueError(f"Label [{label}] consumido dos veces")
            self._produced[label] = True

        for label in outputs:
            if label in self._produced or _INPUT_STREAM.match(label):
                raise ValueError(f"Label de salida duplicado o inválido: [{label}]")
            self._produced[label] = False

        chain = FilterChain(list(inputs), list(filters), list(outputs))
        self.chains.append(chain)
        return chain

    @property
    def open_outputs(self) -> List[str]:
        """Labels producidos que nadie consume (los que se mapean al encode)."""
        return [label for label, used in self._produced.items() if not used]

    def render(self) -> str:
        if not self.chains:
            raise ValueError("Grafo vacío")
        return ";".join(chain.render() for chain in self.chains)


def xfade_filter(transition: str, duration: float, offset: float) -> Filter:
    return Filter("xfade", options={
        "transition": transition,
        "duration": duration,
        "offset": offset,
    })


def subtitles_filter(subtitles_path: PurePath, style: SubtitleStyle) -> Filter:
    return Filter("subtitles", options={
        "filename": PurePath(subtitles_path),
        "force_style": style.force_style(),
    })


def audio_reconcile_filters(target_duration: float) -> List[Filter]:
    """
    Ajusta la voz a exactamente target_duration segundos:
    apad rellena con silencio si es más corta, atrim corta si es más larga,
    y asetpts reinicia los timestamps en cero.
    """
    return [
        Filter("apad", options={"whole_dur": target_duration}),
        Filter("atrim", options={"start": 0, "end": target_duration}),
        Filter("asetpts", args=("PTS-STARTPTS",)),
    ]


def build_render_graph(
    clip_count: int,
    timeline: Timeline,
    subtitles_path: PurePath,
    style: SubtitleStyle,
    transition: str = "fade",
) -> FilterGraph:
    """
    Construye el grafo completo del render final.

    Entradas 0..N-1 son los clips normalizados y la entrada N es la voz.
    Produce [v] (video con subtítulos) y [audio] (voz ajustada al video).

    Args:
        clip_count: Número de clips de video
        timeline: Timeline calculado para esos clips
        subtitles_path: Ruta al archivo SRT
        style: Estilo de subtítulos
        transition: Tipo de transición de xfade

    Returns:
        FilterGraph listo para serializar

    Raises:
        ValueError: Si no hay clips o el timeline no corresponde al número de clips
    """
    if clip_count < 1:
        raise ValueError("Se necesita al menos un clip para construir el grafo")
    if timeline.clip_count != clip_count or len(timeline.offsets) != clip_count - 1:
        raise ValueError(
            f"Timeline de {timeline.clip_count} escenas no corresponde a {clip_count} clips"
        )

    graph = FilterGraph()

    # Video: cadena de xfades [0:v][1:v] -> x1, [x1][2:v] -> x2, ...
    last_label = "0:v"
    for i in range(1, clip_count):
        out_label = f"x{i}"
        graph.add(
            [last_label, f"{i}:v"],
            [xfade_filter(transition, timeline.fade, timeline.offsets[i - 1])],
            [out_label],
        )
        last_label = out_label

    graph.add([last_label], [subtitles_filter(subtitles_path, style)], [VIDEO_LABEL])

    # Audio: la voz es la última entrada
    graph.add(
        [f"{clip_count}:a"],
        audio_reconcile_filters(timeline.effective_duration),
        [AUDIO_LABEL],
    )

    return graph
