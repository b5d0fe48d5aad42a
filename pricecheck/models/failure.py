"""
Failure classification for price lookups.

Lookups have four kinds of unhappy outcome:

- Not found: the card/printing/product does not exist upstream. This is a
  normal, cached result (``LookupResult.success == False``), never an exception.
- Transient provider failure: retried inside the request queue and then
  treated as not found.
- Stale generation: a newer lookup superseded this one. Raised internally as
  ``StaleLookupError`` and surfaced as a distinguished non-error outcome.
- Invalid input: the inbound message carries nothing to look up. Raised as
  ``InvalidLookupError`` and returned as HTTP 400.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Resource failures
    NOT_FOUND = "not_found"

    # Superseded by a newer lookup
    STALE_REQUEST = "stale_request"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(kind=self.kind, message=self.message, detail=self.detail)


class InvalidLookupError(KnownError):
    """Raised when a lookup message carries no usable identifier."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message="Lookup needs a card name, a set code and collector number, or a product id.",
            detail=detail,
            status_code=400,
        )


class StaleLookupError(Exception):
    """
    Raised when a lookup's generation is no longer current.

    Not a failure: callers drop the result silently.
    """

    def __init__(self, generation: int, current: int):
        self.generation = generation
        self.current = current
        super().__init__(f"Lookup generation {generation} superseded by {current}")
