"""Tag extraction."""

from ideamatch.tagging.parser import parse_tags_from_model_output
from ideamatch.tagging.service import AutoTagger, AutoTagReport, TagExtractor

__all__ = [
    "AutoTagReport",
    "AutoTagger",
    "TagExtractor",
    "parse_tags_from_model_output",
]
