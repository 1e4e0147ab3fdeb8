from .parser import StoryboardParser

__all__ = ["StoryboardParser"]
