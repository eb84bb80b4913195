# participium_bot/core/engine/ports.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncContextManager, Optional, Protocol, Union

from participium_bot.core.engine.actions import ButtonAction
from participium_bot.core.engine.domain import (
    BackendUser,
    ConversationSession,
    CreateReportRequest,
    LinkResult,
    Location,
)


# ============================================================================
# OUTBOUND KEYBOARDS
# ============================================================================

@dataclass(frozen=True)
class InlineButton:
    text: str
    action: ButtonAction


@dataclass(frozen=True)
class InlineKeyboard:
    """Persistent button rows attached to a message."""
    rows: list[list[InlineButton]] = field(default_factory=list)


@dataclass(frozen=True)
class LocationRequestKeyboard:
    """One-shot reply keyboard with a single "share my location" button."""
    button_text: str


@dataclass(frozen=True)
class RemoveKeyboard:
    """Hide a previously shown reply keyboard."""


Keyboard = Union[InlineKeyboard, LocationRequestKeyboard, RemoveKeyboard]


# ============================================================================
# COLLABORATORS
# ============================================================================

class ChatGateway(Protocol):
    async def send_message(self, chat_id: str, text: str, keyboard: Keyboard | None = None) -> None: ...
    async def answer_button(self, callback_query_id: str) -> None: ...
    async def download_file(self, file_id: str) -> bytes:
        """Raises MediaFetchError when the file cannot be fetched."""
        ...


class SessionStore(Protocol):
    def get(self, chat_id: str) -> Optional[ConversationSession]: ...
    def put(self, chat_id: str, session: ConversationSession) -> None: ...
    def remove(self, chat_id: str) -> None: ...
    def lock(self, chat_id: str) -> AsyncContextManager[None]:
        """Serialize read-modify-write sequences for one chat."""
        ...


class AddressResolver(Protocol):
    def parse_coordinates(self, text: str) -> Optional[Location]: ...
    def is_within_boundary(self, location: Location) -> bool: ...

    async def geocode(self, address: str) -> tuple[Location, str]:
        """Raises AddressNotFoundError / GeocodingError."""
        ...

    async def reverse_geocode(self, location: Location) -> str:
        """Never raises; degrades to ``"lat, lng"``."""
        ...


class UserDirectory(Protocol):
    async def find_by_username(self, username: str) -> Optional[BackendUser]: ...

    async def verify_and_link(self, username: str, code: str) -> LinkResult:
        """Raises LinkError on invalid, expired or used codes."""
        ...

    async def unlink(self, user_id: int) -> LinkResult: ...


class ReportService(Protocol):
    async def create_report(self, request: CreateReportRequest, user_id: int) -> int:
        """Returns the new report id. Raises ReportError subtypes."""
        ...
