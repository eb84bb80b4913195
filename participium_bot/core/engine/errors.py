# participium_bot/core/engine/errors.py
"""
Typed domain errors.

``ReportError`` subtypes form the submission taxonomy: the report-creation
collaborator raises them and the submission bridge turns each kind into
exactly one chat message.  The remaining errors belong to intake steps and
are handled inside the step that triggered them.
"""
from __future__ import annotations


# ----------------------------------------------------------------------------
# Submission taxonomy
# ----------------------------------------------------------------------------

class ReportError(Exception):
    """Base class for report-creation failures (kind: unspecified)."""

    kind: str = "unspecified"

    def __init__(self, detail: str = "Internal error"):
        self.detail = detail
        super().__init__(detail)


class ReportValidationError(ReportError):
    """Malformed or inadmissible report data."""

    kind = "validation"


class UnauthorizedError(ReportError):
    """Caller not registered or account not verified."""

    kind = "unauthorized"


class InsufficientRightsError(ReportError):
    """Caller may not create reports."""

    kind = "insufficient_rights"


class NotFoundError(ReportError):
    """A resource needed for submission no longer exists."""

    kind = "not_found"


# ----------------------------------------------------------------------------
# Intake errors
# ----------------------------------------------------------------------------

class GeocodingError(Exception):
    """Geocoder unreachable, timed out, or returned garbage."""


class AddressNotFoundError(GeocodingError):
    """Geocoder answered but found nothing for the query."""


class PhotoError(Exception):
    """Base class for photo collection failures."""


class PhotoLimitReachedError(PhotoError):
    """Draft already holds the maximum number of photos."""


class MediaFetchError(PhotoError):
    """
    Photo bytes could not be downloaded.

    Attributes:
        retryable: Whether another attempt may succeed.
    """

    def __init__(self, message: str, retryable: bool = True):
        self.retryable = retryable
        super().__init__(message)


class UnsupportedMediaError(PhotoError):
    """Downloaded bytes are not JPEG, PNG or WebP."""


class CorruptMediaError(PhotoError):
    """Downloaded bytes are empty or exceed the size limit."""


# ----------------------------------------------------------------------------
# Account linking
# ----------------------------------------------------------------------------

class LinkError(Exception):
    """Link code invalid, expired or already used."""
