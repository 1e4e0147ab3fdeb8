"""Modelos y errores de dominio."""

from .models import Scene, Storyboard, ClipAsset, VoiceTrack, SubtitleCue, RenderJob
from .errors import (
    RenderError,
    InvalidTimelineError,
    AcquisitionError,
    SubtitleWriteError,
    EncodeError,
    SynthesisError,
    StoryboardError,
)

__all__ = [
    "Scene", "Storyboard", "ClipAsset", "VoiceTrack", "SubtitleCue", "RenderJob",
    "RenderError", "InvalidTimelineError", "AcquisitionError", "SubtitleWriteError",
    "EncodeError", "SynthesisError", "StoryboardError",
]
