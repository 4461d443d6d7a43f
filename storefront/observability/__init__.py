"""Observability helpers."""

from storefront.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_query,
    record_page,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_query",
    "record_page",
]
