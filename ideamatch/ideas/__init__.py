"""Idea records."""

from ideamatch.ideas.models import Idea, IdeaDraft

__all__ = [
    "Idea",
    "IdeaDraft",
]
