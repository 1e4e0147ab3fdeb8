"""Módulo LLM para generación de storyboards."""

from .openai_client import StoryboardGenerator

__all__ = ["StoryboardGenerator"]
