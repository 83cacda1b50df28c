"""Error taxonomy for the itinerary pipeline.

Only :class:`ValidationError` is allowed to leave the orchestrator. The other
kinds are raised by the stage that detected the problem and recovered by its
caller (fallback generation, or skipping an activity's enrichment).
"""
from __future__ import annotations

from typing import Any, Dict, List


class ItineraryServiceError(Exception):
    """Base class for every error raised by the itinerary pipeline."""


class ValidationError(ItineraryServiceError, ValueError):
    """The trip request is malformed and cannot be planned."""

    def __init__(self, message: str, errors: List[Dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors: List[Dict[str, Any]] = list(errors or [])


class GenerationError(ItineraryServiceError):
    """The completion service failed or returned an unusable payload."""


class GenerationTimeoutError(GenerationError, TimeoutError):
    """The completion call exceeded its wall-clock bound and was cancelled."""


class EnrichmentError(ItineraryServiceError):
    """A place lookup for a single activity failed."""
