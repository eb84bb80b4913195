# tests/conftest.py
"""Pytest configuration and fixtures"""
import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from participium_bot.core.engine.domain import (  # noqa: E402
    BackendUser,
    ChatContext,
    InboundEvent,
    LinkResult,
    Location,
    LocationData,
    MediaItem,
)
from participium_bot.core.engine.errors import AddressNotFoundError, LinkError, MediaFetchError  # noqa: E402
from participium_bot.infra.boundaries import CityBoundary  # noqa: E402
from participium_bot.infra.geocoding import parse_coordinates  # noqa: E402
from participium_bot.infra.metrics import get_metrics_collector  # noqa: E402


# ============================================================================
# Fakes for the engine's collaborators
# ============================================================================

class FakeGateway:
    """Records outbound messages; serves photo bytes from a dict."""

    def __init__(self):
        self.sent: list[tuple[str, str, object]] = []
        self.answered: list[str] = []
        self.files: dict[str, bytes] = {}

    async def send_message(self, chat_id, text, keyboard=None):
        self.sent.append((chat_id, text, keyboard))

    async def answer_button(self, callback_query_id):
        self.answered.append(callback_query_id)

    async def download_file(self, file_id):
        if file_id not in self.files:
            raise MediaFetchError(f"no such file: {file_id}")
        return self.files[file_id]

    @property
    def texts(self) -> list[str]:
        return [text for _, text, _ in self.sent]

    @property
    def last_text(self) -> str:
        return self.sent[-1][1]

    @property
    def last_keyboard(self):
        return self.sent[-1][2]


# Rough square around central Turin; (45.0703, 7.6869) is inside.
TURIN_SQUARE = CityBoundary(
    name="test",
    polygons=[[[(7.58, 45.00), (7.77, 45.00), (7.77, 45.14), (7.58, 45.14), (7.58, 45.00)]]],
)


class FakeResolver:
    """AddressResolver with canned geocoding answers."""

    def __init__(self, boundary: CityBoundary = TURIN_SQUARE):
        self.boundary = boundary
        self.addresses: dict[str, tuple[Location, str]] = {}
        self.geocode_error: Exception | None = None
        self.reverse_result = "Via Roma 1, Torino"
        self.geocode_calls: list[str] = []

    def parse_coordinates(self, text):
        return parse_coordinates(text)

    def is_within_boundary(self, location):
        return self.boundary.contains(location)

    async def geocode(self, address):
        self.geocode_calls.append(address)
        if self.geocode_error is not None:
            raise self.geocode_error
        if address not in self.addresses:
            raise AddressNotFoundError(address)
        return self.addresses[address]

    async def reverse_geocode(self, location):
        return self.reverse_result


class FakeUsers:
    """UserDirectory keyed by lower-case username."""

    def __init__(self):
        self.users: dict[str, BackendUser] = {}
        self.link_codes: dict[str, str] = {}
        self.unlinked: list[int] = []
        self.lookup_error: Exception | None = None
        self.unlink_result = LinkResult(success=True, message="Telegram account unlinked")

    def add(self, username: str, user_id: int = 7, confirmed: bool = True) -> BackendUser:
        user = BackendUser(id=user_id, username=username, telegram_link_confirmed=confirmed)
        self.users[username] = user
        return user

    async def find_by_username(self, username):
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.users.get(username)

    async def verify_and_link(self, username, code):
        if self.link_codes.get(username) != code:
            raise LinkError("Invalid or expired code")
        return LinkResult(success=True, message="Telegram account linked successfully")

    async def unlink(self, user_id):
        self.unlinked.append(user_id)
        return self.unlink_result


class FakeReports:
    """ReportService that records requests and returns increasing ids."""

    def __init__(self, first_id: int = 42):
        self.requests = []
        self.next_id = first_id
        self.error: Exception | None = None

    async def create_report(self, request, user_id):
        if self.error is not None:
            raise self.error
        self.requests.append((request, user_id))
        report_id = self.next_id
        self.next_id += 1
        return report_id


# ============================================================================
# Event builders
# ============================================================================

def text_event(text: str, chat_id: str = "100", username: str | None = "mario") -> InboundEvent:
    return InboundEvent(chat_id=chat_id, event_id="1", username=username, text=text)


def location_event(lat: float, lon: float, chat_id: str = "100", username: str | None = "mario") -> InboundEvent:
    return InboundEvent(
        chat_id=chat_id, event_id="2", username=username,
        location=LocationData(latitude=lat, longitude=lon),
    )


def photo_event(file_id: str, chat_id: str = "100", username: str | None = "mario") -> InboundEvent:
    return InboundEvent(
        chat_id=chat_id, event_id="3", username=username,
        photo=MediaItem(file_id=file_id, content_type="image/jpeg"),
    )


def button_event(action, chat_id: str = "100", username: str | None = "mario", data: str = "x") -> InboundEvent:
    return InboundEvent(
        chat_id=chat_id, event_id="4", username=username,
        button=action, button_data=data, callback_query_id="cbq-1",
    )


def make_image(fmt: str = "JPEG", size=(8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_metrics():
    """Counters are process-global; start every test from zero."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def users():
    return FakeUsers()


@pytest.fixture
def reports():
    return FakeReports()


@pytest.fixture
def chat_id():
    """Default chat ID for tests"""
    return "100"


@pytest.fixture
def ctx(gateway, chat_id):
    return ChatContext(chat_id=chat_id, username="mario", gateway=gateway)


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture
def png_bytes():
    return make_image("PNG")
