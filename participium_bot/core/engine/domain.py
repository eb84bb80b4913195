# participium_bot/core/engine/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from participium_bot.core.engine.actions import ButtonAction
    from participium_bot.core.engine.ports import ChatGateway, Keyboard


# ============================================================================
# WIZARD STEPS
# ============================================================================

class WizardStep(str, Enum):
    """Report intake steps, in the order they must be completed."""
    WAITING_LOCATION = "waiting_location"
    WAITING_TITLE = "waiting_title"
    WAITING_DESCRIPTION = "waiting_description"
    WAITING_CATEGORY = "waiting_category"
    WAITING_PHOTOS = "waiting_photos"
    WAITING_ANONYMITY = "waiting_anonymity"
    WAITING_CONFIRMATION = "waiting_confirmation"


class StepOutcome(str, Enum):
    """What a step handler did with one inbound input."""
    ADVANCED = "advanced"  # draft updated, session moved to the next step
    REJECTED = "rejected"  # input had the right shape but failed validation; user re-prompted
    IGNORED = "ignored"    # input does not match the current step; nothing sent, nothing changed
    ACCEPTED = "accepted"  # input stored without a step change (photos 1..3)
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


# ============================================================================
# REPORT CATEGORIES
# ============================================================================

class ReportCategory(str, Enum):
    """Fixed category set. Declaration order defines the button index."""
    WATER_SUPPLY = "Water Supply - Drinking Water"
    ARCHITECTURAL_BARRIERS = "Architectural Barriers"
    SEWER_SYSTEM = "Sewer System"
    PUBLIC_LIGHTING = "Public Lighting"
    WASTE = "Waste"
    ROAD_SIGNS = "Road Signs and Traffic Lights"
    ROADS = "Roads and Urban Furnishings"
    GREEN_AREAS = "Public Green Areas and Playgrounds"
    OTHER = "Other"

    @classmethod
    def ordered(cls) -> list["ReportCategory"]:
        return list(cls)

    @classmethod
    def from_index(cls, index: int) -> Optional["ReportCategory"]:
        """Return the category at ``index`` or None when out of range."""
        categories = cls.ordered()
        if 0 <= index < len(categories):
            return categories[index]
        return None


# ============================================================================
# REPORT DRAFT
# ============================================================================

MIN_PHOTOS = 1
MAX_PHOTOS = 3


@dataclass(frozen=True)
class Location:
    """WGS84 point. Values are kept exactly as received or parsed."""
    latitude: float
    longitude: float

    def as_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class InlinePhoto:
    """A downloaded photo already encoded for the submission payload."""
    mime_type: str
    size_bytes: int
    data_uri: str


@dataclass
class ReportDraft:
    """
    Report fields collected so far.

    Fields are filled strictly in step order; a field is only written after
    its step has validated the input.
    """
    location: Optional[Location] = None
    address: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[ReportCategory] = None
    photos: list[InlinePhoto] = field(default_factory=list)
    is_anonymous: Optional[bool] = None

    @property
    def photo_count(self) -> int:
        return len(self.photos)

    def has_room_for_photo(self) -> bool:
        return len(self.photos) < MAX_PHOTOS

    def is_complete(self) -> bool:
        """True when every field required for submission is present."""
        return bool(
            self.location is not None
            and self.title
            and self.description
            and self.category is not None
            and MIN_PHOTOS <= len(self.photos) <= MAX_PHOTOS
        )


# ============================================================================
# SESSION STATE
# ============================================================================

@dataclass
class ConversationSession:
    """
    Intake state for one chat.

    Owned by the session store; handlers look it up, mutate it in place
    while holding the chat's lock, and drop the reference afterwards.
    """
    chat_id: str
    username: str
    step: WizardStep = WizardStep.WAITING_LOCATION
    draft: ReportDraft = field(default_factory=ReportDraft)


# ============================================================================
# BACKEND VIEWS
# ============================================================================

@dataclass(frozen=True)
class BackendUser:
    """Citizen account as seen by the bot."""
    id: int
    username: str
    telegram_link_confirmed: bool


@dataclass(frozen=True)
class LinkResult:
    success: bool
    message: str


@dataclass(frozen=True)
class CreateReportRequest:
    """Report-creation payload handed to the backend."""
    title: str
    description: str
    category: ReportCategory
    location: Location
    address: Optional[str]
    photos: list[str]
    is_anonymous: bool

    def to_payload(self) -> dict:
        payload = {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "location": self.location.as_dict(),
            "photos": list(self.photos),
            "isAnonymous": self.is_anonymous,
        }
        if self.address:
            payload["address"] = self.address
        return payload


# ============================================================================
# INBOUND EVENTS
# ============================================================================

@dataclass
class MediaItem:
    """Attachment reference delivered by the gateway (bytes fetched later)."""
    file_id: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None


@dataclass
class LocationData:
    """GPS coordinates shared by the user."""
    latitude: float
    longitude: float


@dataclass
class InboundEvent:
    """
    Normalized inbound update.
    Exactly one of ``text``, ``location``, ``photo`` or ``button`` is the
    payload; ``button_data`` keeps the raw callback string for logging.
    """
    chat_id: str
    event_id: str
    username: Optional[str] = None
    text: Optional[str] = None
    location: Optional[LocationData] = None
    photo: Optional[MediaItem] = None
    button: Optional["ButtonAction"] = None
    button_data: Optional[str] = None
    callback_query_id: Optional[str] = None

    def has_text(self) -> bool:
        return self.text is not None

    def is_command(self) -> bool:
        return bool(self.text and self.text.startswith("/"))

    def has_location(self) -> bool:
        return self.location is not None

    def has_photo(self) -> bool:
        return self.photo is not None

    def is_button(self) -> bool:
        return self.callback_query_id is not None

    @property
    def kind(self) -> str:
        if self.is_button():
            return "button"
        if self.has_location():
            return "location"
        if self.has_photo():
            return "photo"
        if self.is_command():
            return "command"
        return "text"


# ============================================================================
# CONVERSATION CONTEXT
# ============================================================================

@dataclass
class ChatContext:
    """
    Per-update context passed explicitly through every handler:
    who is talking, in which chat, and how to answer.
    """
    chat_id: str
    username: Optional[str]
    gateway: "ChatGateway"

    async def reply(self, text: str, keyboard: "Keyboard | None" = None) -> None:
        await self.gateway.send_message(self.chat_id, text, keyboard)
