"""Domain error taxonomy.

Storage and services raise these; the FastAPI layer maps them to HTTP
responses in ``backend.app``. Nothing here is retried automatically.
"""

from __future__ import annotations

from typing import Optional


class MarketplaceError(Exception):
    """Base class for every error the API knows how to translate."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Malformed or missing input. ``errors`` lists every violated field."""

    def __init__(self, errors: list[dict], message: str = "Invalid data"):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class ConflictError(MarketplaceError):
    """A uniqueness invariant would be violated."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFound(MarketplaceError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class UpstreamError(MarketplaceError):
    """The generative AI endpoint was unreachable, timed out or answered non-2xx."""


class AnalysisParseError(MarketplaceError):
    """The AI answer could not be turned into JSON.

    Keeps the raw text and the underlying exception for diagnostics.
    """

    def __init__(self, raw_text: str, cause: Optional[Exception] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to parse AI response{detail}")
        self.raw_text = raw_text
        self.cause = cause
