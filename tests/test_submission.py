# tests/test_submission.py
"""Tests for draft completeness, request building and the error-to-message mapping"""
import pytest

from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.engine.domain import InlinePhoto, Location, ReportCategory, ReportDraft
from participium_bot.core.engine.errors import (
    InsufficientRightsError,
    NotFoundError,
    ReportError,
    ReportValidationError,
    UnauthorizedError,
)
from participium_bot.core.engine.submission import (
    SubmissionBridge,
    build_request,
    check_complete,
    describe_submission_error,
)

from conftest import FakeReports


def _photo(n: int = 0) -> InlinePhoto:
    return InlinePhoto(mime_type="image/png", size_bytes=4, data_uri=f"data:image/png;base64,AAA{n}")


def _draft(**overrides) -> ReportDraft:
    fields = dict(
        location=Location(45.0703, 7.6869),
        address="Via Roma 1, Torino",
        title=" Pothole ",
        description=" Deep hole in the road ",
        category=ReportCategory.ROADS,
        photos=[_photo(1), _photo(2)],
        is_anonymous=False,
    )
    fields.update(overrides)
    return ReportDraft(**fields)


class TestCheckComplete:
    def test_complete_draft_passes(self):
        check_complete(_draft())

    @pytest.mark.parametrize("overrides,message", [
        ({"location": None}, "Location is required"),
        ({"title": "   "}, "Title is required"),
        ({"description": None}, "Description is required"),
        ({"category": None}, "Category is required"),
        ({"photos": []}, "Photos must contain between 1 and 3 images"),
        ({"photos": [_photo(i) for i in range(4)]}, "Photos must contain between 1 and 3 images"),
    ])
    def test_first_missing_field(self, overrides, message):
        with pytest.raises(ReportValidationError) as exc_info:
            check_complete(_draft(**overrides))
        assert exc_info.value.detail == message


class TestBuildRequest:
    def test_trims_text_and_keeps_everything_else(self):
        request = build_request(_draft())

        assert request.title == "Pothole"
        assert request.description == "Deep hole in the road"
        assert request.location == Location(45.0703, 7.6869)
        assert request.category == ReportCategory.ROADS
        assert request.photos == ["data:image/png;base64,AAA1", "data:image/png;base64,AAA2"]
        assert request.is_anonymous is False


class TestSubmissionBridge:
    @pytest.mark.asyncio
    async def test_submit_returns_report_id(self):
        reports = FakeReports(first_id=101)

        report_id = await SubmissionBridge(reports).submit(_draft(), user_id=5)

        assert report_id == 101
        assert reports.requests[0][1] == 5

    @pytest.mark.asyncio
    async def test_incomplete_draft_never_reaches_backend(self):
        reports = FakeReports()

        with pytest.raises(ReportValidationError):
            await SubmissionBridge(reports).submit(_draft(category=None), user_id=5)

        assert reports.requests == []


class TestDescribeSubmissionError:
    @pytest.mark.parametrize("message,key", [
        ("Location is required", "err_submit_location_missing"),
        ("Location must include latitude and longitude", "err_submit_location_missing"),
        ("Invalid coordinates", "err_submit_coordinates"),
        ("Latitude must be between -90 and 90", "err_submit_coordinates"),
        ("Longitude must be between -180 and 180", "err_submit_coordinates"),
        ("Location is outside Turin city boundaries", "err_submit_outside"),
        ("Photos must contain between 1 and 3 images", "err_submit_photo_count"),
        ("Photo 2 has unsupported format image/gif", "err_submit_photo_format"),
        ("Photo 1 is not a valid image data URI", "err_submit_photo_corrupt"),
    ])
    def test_validation_substrings(self, message, key):
        assert describe_submission_error(ReportValidationError(message)) == get_text(key)

    def test_other_validation_quotes_message(self):
        text = describe_submission_error(ReportValidationError("Title too long"))
        assert text == get_text("err_submit_validation", message="Title too long")
        assert "Title too long" in text

    @pytest.mark.parametrize("exc,key", [
        (UnauthorizedError("no"), "err_submit_unauthorized"),
        (InsufficientRightsError("no"), "err_submit_insufficient_rights"),
        (NotFoundError("gone"), "err_submit_not_found"),
        (ReportError("boom"), "err_submit_unspecified"),
        (RuntimeError("boom"), "err_submit_unspecified"),
    ])
    def test_kinds(self, exc, key):
        assert describe_submission_error(exc) == get_text(key)

    def test_kind_attribute(self):
        assert ReportValidationError("x").kind == "validation"
        assert UnauthorizedError("x").kind == "unauthorized"
        assert InsufficientRightsError("x").kind == "insufficient_rights"
        assert NotFoundError("x").kind == "not_found"
        assert ReportError().kind == "unspecified"
