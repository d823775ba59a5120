"""Observability module for metrics and monitoring."""

from ideamatch.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_request,
    track_llm_request,
    track_match_decision,
    track_tag_extraction,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_embedding_request",
    "track_llm_request",
    "track_match_decision",
    "track_tag_extraction",
]
