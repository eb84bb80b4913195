# participium_bot/core/engine/submission.py
"""
Submission bridge: complete draft → report-creation request → report id.

Failures come back as ``ReportError`` subtypes and are turned into exactly
one chat message by ``describe_submission_error``.
"""
from __future__ import annotations

from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.engine.domain import (
    CreateReportRequest,
    ReportDraft,
    MAX_PHOTOS,
    MIN_PHOTOS,
)
from participium_bot.core.engine.errors import (
    InsufficientRightsError,
    NotFoundError,
    ReportError,
    ReportValidationError,
    UnauthorizedError,
)
from participium_bot.core.engine.ports import ReportService
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

# Validation message substring → message key. First match wins.
_VALIDATION_MESSAGES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Location is required", "Location must include"), "err_submit_location_missing"),
    (("Invalid coordinates", "Latitude must be", "Longitude must be"), "err_submit_coordinates"),
    (("outside Turin city boundaries",), "err_submit_outside"),
    (("Photos must contain",), "err_submit_photo_count"),
    (("unsupported format",), "err_submit_photo_format"),
    (("not a valid image data URI",), "err_submit_photo_corrupt"),
)


def check_complete(draft: ReportDraft) -> None:
    """
    Raise ``ReportValidationError`` for the first missing field.

    Messages match the backend's own validation wording so they map to
    the same chat message whichever side rejects the draft.
    """
    if draft.location is None:
        raise ReportValidationError("Location is required")
    if not (draft.title or "").strip():
        raise ReportValidationError("Title is required")
    if not (draft.description or "").strip():
        raise ReportValidationError("Description is required")
    if draft.category is None:
        raise ReportValidationError("Category is required")
    if not MIN_PHOTOS <= draft.photo_count <= MAX_PHOTOS:
        raise ReportValidationError(
            f"Photos must contain between {MIN_PHOTOS} and {MAX_PHOTOS} images"
        )


def build_request(draft: ReportDraft) -> CreateReportRequest:
    check_complete(draft)
    return CreateReportRequest(
        title=draft.title.strip(),
        description=draft.description.strip(),
        category=draft.category,
        location=draft.location,
        address=draft.address,
        photos=[photo.data_uri for photo in draft.photos],
        is_anonymous=bool(draft.is_anonymous),
    )


class SubmissionBridge:
    def __init__(self, reports: ReportService) -> None:
        self.reports = reports

    async def submit(self, draft: ReportDraft, user_id: int) -> int:
        """Returns the new report id. Raises ``ReportError`` subtypes."""
        request = build_request(draft)
        return await self.reports.create_report(request, user_id)


def describe_submission_error(exc: BaseException) -> str:
    """Map a submission failure to the message shown in the chat."""
    if isinstance(exc, ReportValidationError):
        message = exc.detail
        for needles, key in _VALIDATION_MESSAGES:
            if any(needle in message for needle in needles):
                return get_text(key)
        return get_text("err_submit_validation", message=message)

    if isinstance(exc, UnauthorizedError):
        return get_text("err_submit_unauthorized")
    if isinstance(exc, InsufficientRightsError):
        return get_text("err_submit_insufficient_rights")
    if isinstance(exc, NotFoundError):
        return get_text("err_submit_not_found")

    if not isinstance(exc, ReportError):
        logger.error("Unexpected submission failure: %s: %s", type(exc).__name__, exc)
    return get_text("err_submit_unspecified")
