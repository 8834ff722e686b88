"""Structured-data extraction from free-form agent text."""

from location_intel.extraction.response_extractor import (
    Extraction,
    Recognized,
    ResponseExtractor,
    Unrecognized,
    extract,
)

__all__ = [
    "Extraction",
    "Recognized",
    "ResponseExtractor",
    "Unrecognized",
    "extract",
]
