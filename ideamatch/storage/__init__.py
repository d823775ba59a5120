"""Idea storage module."""

from ideamatch.storage.service import IdeaStore, QdrantIdeaStore

__all__ = [
    "IdeaStore",
    "QdrantIdeaStore",
]
