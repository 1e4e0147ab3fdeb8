"""Módulo de video: timeline, subtítulos, grafo de filtros y renderizado."""

from .timeline import Timeline, compute_timeline, effective_duration
from .subtitles import SubtitleGenerator, build_cues, render_srt, sanitize_caption, format_timestamp
from .filtergraph import FilterGraph, build_render_graph, audio_reconcile_filters
from .renderer import VideoRenderer

__all__ = [
    "Timeline", "compute_timeline", "effective_duration",
    "SubtitleGenerator", "build_cues", "render_srt", "sanitize_caption", "format_timestamp",
    "FilterGraph", "build_render_graph", "audio_reconcile_filters",
    "VideoRenderer",
]
