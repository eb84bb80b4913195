# tests/test_domain.py
"""Tests for domain models and inline button actions"""
import pytest

from participium_bot.core.engine.actions import (
    AnonymityChoice,
    CategorySelect,
    ConfirmChoice,
    PhotosDone,
    UnlinkChoice,
    decode_action,
    encode_action,
)
from participium_bot.core.engine.domain import (
    CreateReportRequest,
    InboundEvent,
    InlinePhoto,
    Location,
    LocationData,
    MediaItem,
    ReportCategory,
    ReportDraft,
    MAX_PHOTOS,
)


class TestReportCategory:
    def test_nine_categories_in_fixed_order(self):
        ordered = ReportCategory.ordered()
        assert len(ordered) == 9
        assert ordered[0] == ReportCategory.WATER_SUPPLY
        assert ordered[3].value == "Public Lighting"
        assert ordered[-1] == ReportCategory.OTHER

    def test_from_index(self):
        assert ReportCategory.from_index(0).value == "Water Supply - Drinking Water"
        assert ReportCategory.from_index(8) == ReportCategory.OTHER

    @pytest.mark.parametrize("index", [-1, 9, 100])
    def test_from_index_out_of_range(self, index):
        assert ReportCategory.from_index(index) is None


class TestReportDraft:
    def _photo(self):
        return InlinePhoto(mime_type="image/jpeg", size_bytes=3, data_uri="data:image/jpeg;base64,AAA")

    def test_new_draft_is_incomplete(self):
        draft = ReportDraft()
        assert not draft.is_complete()
        assert draft.photo_count == 0
        assert draft.has_room_for_photo()

    def test_complete_draft(self):
        draft = ReportDraft(
            location=Location(45.0703, 7.6869),
            title="Broken lamp",
            description="Lamp is off",
            category=ReportCategory.PUBLIC_LIGHTING,
            photos=[self._photo()],
            is_anonymous=False,
        )
        assert draft.is_complete()

    def test_room_for_photo_stops_at_max(self):
        draft = ReportDraft(photos=[self._photo() for _ in range(MAX_PHOTOS)])
        assert not draft.has_room_for_photo()

    def test_too_many_photos_is_incomplete(self):
        draft = ReportDraft(
            location=Location(45.0, 7.6),
            title="t",
            description="d",
            category=ReportCategory.OTHER,
            photos=[self._photo() for _ in range(MAX_PHOTOS + 1)],
        )
        assert not draft.is_complete()


class TestCreateReportRequest:
    def _request(self, address=None):
        return CreateReportRequest(
            title="Pothole",
            description="Deep hole",
            category=ReportCategory.ROADS,
            location=Location(45.0703, 7.6869),
            address=address,
            photos=["data:image/png;base64,AAAA"],
            is_anonymous=True,
        )

    def test_payload_fields(self):
        payload = self._request().to_payload()
        assert payload == {
            "title": "Pothole",
            "description": "Deep hole",
            "category": "Roads and Urban Furnishings",
            "location": {"latitude": 45.0703, "longitude": 7.6869},
            "photos": ["data:image/png;base64,AAAA"],
            "isAnonymous": True,
        }

    def test_payload_includes_address_when_known(self):
        payload = self._request(address="Via Roma 1, Torino").to_payload()
        assert payload["address"] == "Via Roma 1, Torino"


class TestInboundEventKind:
    def test_text(self):
        assert InboundEvent(chat_id="1", event_id="1", text="hello").kind == "text"

    def test_command(self):
        event = InboundEvent(chat_id="1", event_id="1", text="/newreport")
        assert event.is_command()
        assert event.kind == "command"

    def test_location(self):
        event = InboundEvent(chat_id="1", event_id="1", location=LocationData(45.0, 7.6))
        assert event.kind == "location"

    def test_photo(self):
        event = InboundEvent(chat_id="1", event_id="1", photo=MediaItem(file_id="f"))
        assert event.kind == "photo"

    def test_button_without_decoded_action_is_still_a_button(self):
        event = InboundEvent(chat_id="1", event_id="1", button_data="junk", callback_query_id="q")
        assert event.kind == "button"
        assert event.button is None


class TestButtonActions:
    @pytest.mark.parametrize("data,expected", [
        ("cat_0", CategorySelect(0)),
        ("cat_8", CategorySelect(8)),
        ("done", PhotosDone()),
        ("anon_yes", AnonymityChoice(True)),
        ("anon_no", AnonymityChoice(False)),
        ("confirm_yes", ConfirmChoice(True)),
        ("confirm_no", ConfirmChoice(False)),
        ("unlink_confirm", UnlinkChoice(True)),
        ("unlink_cancel", UnlinkChoice(False)),
    ])
    def test_decode(self, data, expected):
        assert decode_action(data) == expected

    @pytest.mark.parametrize("data", [None, "", "cat_", "cat_x", "cat_1234", "CONFIRM_YES", "anon_maybe"])
    def test_decode_unknown(self, data):
        assert decode_action(data) is None

    def test_encode_matches_wire_format(self):
        assert encode_action(CategorySelect(3)) == "cat_3"
        assert encode_action(ConfirmChoice(False)) == "confirm_no"
        assert encode_action(UnlinkChoice(True)) == "unlink_confirm"

    def test_encode_rejects_foreign_objects(self):
        with pytest.raises(TypeError):
            encode_action("cat_1")
