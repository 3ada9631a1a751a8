"""Typed models used across the application."""

from .source import Source, SourceType
from .document import NewsDocument
from .assessment import (
    ErrorKind,
    MergedResult,
    ProviderResult,
    ProviderScore,
    TickerAssessment,
)

__all__ = [
    "Source",
    "SourceType",
    "NewsDocument",
    "ErrorKind",
    "MergedResult",
    "ProviderResult",
    "ProviderScore",
    "TickerAssessment",
]
