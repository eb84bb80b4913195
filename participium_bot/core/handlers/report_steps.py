# participium_bot/core/handlers/report_steps.py
"""
Step handlers for the report wizard.

One handler per inbound input shape (location pin, text, button, photo).
Each dispatches on ``session.step``, mutates the session in place and
returns a ``StepOutcome``:

    ADVANCED  → draft field written, step moved forward, next prompt sent
    ACCEPTED  → photo stored, still in WAITING_PHOTOS
    REJECTED  → right input shape, failed validation, user re-prompted
    IGNORED   → input does not belong to the current step; nothing sent

The confirm/cancel choice in WAITING_CONFIRMATION is not handled here;
it belongs to the wizard, which owns submission and session removal.

All external calls (geocoder, photo download) are bounded by
``call_timeout`` seconds; a timeout counts as a generic adapter failure.
"""
from __future__ import annotations

import asyncio

from participium_bot.core.bots.report_bot import keyboards
from participium_bot.core.bots.report_bot.texts import get_text
from participium_bot.core.bots.report_bot.validators import is_blank, is_done_command
from participium_bot.core.engine.actions import (
    AnonymityChoice,
    ButtonAction,
    CategorySelect,
    PhotosDone,
)
from participium_bot.core.engine.domain import (
    ChatContext,
    ConversationSession,
    Location,
    LocationData,
    MediaItem,
    ReportCategory,
    ReportDraft,
    StepOutcome,
    WizardStep,
    MAX_PHOTOS,
)
from participium_bot.core.engine.errors import (
    AddressNotFoundError,
    CorruptMediaError,
    GeocodingError,
    MediaFetchError,
    PhotoLimitReachedError,
    UnsupportedMediaError,
)
from participium_bot.core.engine.photo_collector import PhotoCollector
from participium_bot.core.engine.ports import AddressResolver, RemoveKeyboard
from participium_bot.infra.logging_config import LogContext, get_logger, mask_coordinates

logger = get_logger(__name__)


def render_summary(draft: ReportDraft) -> str:
    """Confirmation summary shown before submission."""
    location = draft.location
    return get_text(
        "summary",
        latitude=location.latitude if location else 0.0,
        longitude=location.longitude if location else 0.0,
        address=draft.address or get_text("summary_no_address"),
        title=draft.title or "",
        description=draft.description or "",
        category=draft.category.value if draft.category else "",
        photo_count=draft.photo_count,
        privacy=get_text("privacy_anonymous" if draft.is_anonymous else "privacy_public"),
    )


class ReportStepHandlers:
    """Per-step input validation and draft updates."""

    def __init__(
        self,
        resolver: AddressResolver,
        photos: PhotoCollector,
        *,
        call_timeout: float = 10.0,
        max_photo_mb: int = 5,
    ) -> None:
        self.resolver = resolver
        self.photos = photos
        self.call_timeout = call_timeout
        self.max_photo_mb = max_photo_mb

    # ------------------------------------------------------------------
    # Location pin
    # ------------------------------------------------------------------

    async def handle_location(
        self, ctx: ChatContext, session: ConversationSession, pin: LocationData
    ) -> StepOutcome:
        if session.step != WizardStep.WAITING_LOCATION:
            return StepOutcome.IGNORED

        location = Location(latitude=pin.latitude, longitude=pin.longitude)
        if not self.resolver.is_within_boundary(location):
            await ctx.reply(get_text("err_pin_outside"))
            return StepOutcome.REJECTED

        await self._accept_location(ctx, session, location, None, "ok_location_pin")
        return StepOutcome.ADVANCED

    # ------------------------------------------------------------------
    # Free text
    # ------------------------------------------------------------------

    async def handle_text(
        self, ctx: ChatContext, session: ConversationSession, text: str
    ) -> StepOutcome:
        step = session.step

        if step == WizardStep.WAITING_LOCATION:
            return await self._handle_location_text(ctx, session, text)

        if step == WizardStep.WAITING_TITLE:
            if is_blank(text):
                await ctx.reply(get_text("err_title_required"))
                return StepOutcome.REJECTED
            session.draft.title = text
            session.step = WizardStep.WAITING_DESCRIPTION
            await ctx.reply(get_text("q_description"))
            return StepOutcome.ADVANCED

        if step == WizardStep.WAITING_DESCRIPTION:
            if is_blank(text):
                await ctx.reply(get_text("err_description_required"))
                return StepOutcome.REJECTED
            session.draft.description = text
            session.step = WizardStep.WAITING_CATEGORY
            await ctx.reply(get_text("q_category"), keyboards.category_keyboard())
            return StepOutcome.ADVANCED

        if step == WizardStep.WAITING_PHOTOS and is_done_command(text):
            return await self._complete_photos(ctx, session)

        return StepOutcome.IGNORED

    async def _handle_location_text(
        self, ctx: ChatContext, session: ConversationSession, text: str
    ) -> StepOutcome:
        log = LogContext(logger, chat_id=ctx.chat_id, step=session.step.value)

        coordinates = self.resolver.parse_coordinates(text)
        if coordinates is not None:
            if not self.resolver.is_within_boundary(coordinates):
                await ctx.reply(get_text("err_coordinates_outside"))
                return StepOutcome.REJECTED
            await self._accept_location(ctx, session, coordinates, None, "ok_location_coordinates")
            return StepOutcome.ADVANCED

        if is_blank(text):
            await ctx.reply(get_text("err_address_not_found"))
            return StepOutcome.REJECTED

        try:
            location, address = await asyncio.wait_for(
                self.resolver.geocode(text.strip()), timeout=self.call_timeout
            )
        except AddressNotFoundError:
            await ctx.reply(get_text("err_address_not_found"))
            return StepOutcome.REJECTED
        except (GeocodingError, TimeoutError) as e:
            log.warning(f"Geocoding failed: {type(e).__name__}: {e}")
            await ctx.reply(get_text("err_location_failed"))
            return StepOutcome.REJECTED

        if not self.resolver.is_within_boundary(location):
            log.info(
                "Geocoded address outside boundary "
                f"({mask_coordinates(location.latitude, location.longitude)})"
            )
            await ctx.reply(get_text("err_address_outside"))
            return StepOutcome.REJECTED

        await self._accept_location(ctx, session, location, address, "ok_location_address")
        return StepOutcome.ADVANCED

    async def _accept_location(
        self,
        ctx: ChatContext,
        session: ConversationSession,
        location: Location,
        address: str | None,
        text_key: str,
    ) -> None:
        if address is None:
            address = await self._reverse_geocode(location)
        session.draft.location = location
        session.draft.address = address
        session.step = WizardStep.WAITING_TITLE
        await ctx.reply(get_text(text_key), RemoveKeyboard())

    async def _reverse_geocode(self, location: Location) -> str:
        try:
            return await asyncio.wait_for(
                self.resolver.reverse_geocode(location), timeout=self.call_timeout
            )
        except TimeoutError:
            logger.warning("Reverse geocoding timed out")
            return f"{location.latitude}, {location.longitude}"

    # ------------------------------------------------------------------
    # Buttons
    # ------------------------------------------------------------------

    async def handle_button(
        self, ctx: ChatContext, session: ConversationSession, action: ButtonAction
    ) -> StepOutcome:
        step = session.step

        if step == WizardStep.WAITING_CATEGORY and isinstance(action, CategorySelect):
            category = ReportCategory.from_index(action.index)
            if category is None:
                return StepOutcome.IGNORED
            session.draft.category = category
            session.step = WizardStep.WAITING_PHOTOS
            await ctx.reply(get_text("q_photos"), keyboards.done_keyboard())
            return StepOutcome.ADVANCED

        if step == WizardStep.WAITING_PHOTOS and isinstance(action, PhotosDone):
            return await self._complete_photos(ctx, session)

        if step == WizardStep.WAITING_ANONYMITY and isinstance(action, AnonymityChoice):
            session.draft.is_anonymous = action.anonymous
            session.step = WizardStep.WAITING_CONFIRMATION
            await ctx.reply(render_summary(session.draft), keyboards.confirm_keyboard())
            return StepOutcome.ADVANCED

        return StepOutcome.IGNORED

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    async def handle_photo(
        self, ctx: ChatContext, session: ConversationSession, media: MediaItem
    ) -> StepOutcome:
        if session.step != WizardStep.WAITING_PHOTOS:
            return StepOutcome.IGNORED

        log = LogContext(logger, chat_id=ctx.chat_id, step=session.step.value)
        draft = session.draft

        try:
            await asyncio.wait_for(
                self.photos.add_photo(draft, media), timeout=self.call_timeout
            )
        except PhotoLimitReachedError:
            await ctx.reply(get_text("err_photo_limit", max=MAX_PHOTOS), keyboards.done_keyboard())
            return StepOutcome.REJECTED
        except UnsupportedMediaError as e:
            log.info(f"Photo rejected: {e}")
            await ctx.reply(get_text("err_photo_unsupported"), keyboards.done_keyboard())
            return StepOutcome.REJECTED
        except CorruptMediaError as e:
            log.info(f"Photo rejected: {e}")
            await ctx.reply(
                get_text("err_photo_corrupt", max_mb=self.max_photo_mb), keyboards.done_keyboard()
            )
            return StepOutcome.REJECTED
        except (MediaFetchError, TimeoutError) as e:
            log.warning(f"Photo download failed: {type(e).__name__}: {e}")
            await ctx.reply(get_text("err_photo_fetch"), keyboards.done_keyboard())
            return StepOutcome.REJECTED

        count = draft.photo_count
        if count >= MAX_PHOTOS:
            await ctx.reply(get_text("ok_photos_full", max=MAX_PHOTOS), keyboards.done_keyboard())
        else:
            remaining = MAX_PHOTOS - count
            await ctx.reply(
                get_text(
                    "ok_photo_received",
                    count=count,
                    max=MAX_PHOTOS,
                    remaining=remaining,
                    noun="photos" if remaining > 1 else "photo",
                ),
                keyboards.done_keyboard(),
            )
        return StepOutcome.ACCEPTED

    async def _complete_photos(self, ctx: ChatContext, session: ConversationSession) -> StepOutcome:
        if session.draft.photo_count == 0:
            await ctx.reply(get_text("err_photo_required"), keyboards.done_keyboard())
            return StepOutcome.REJECTED
        session.step = WizardStep.WAITING_ANONYMITY
        await ctx.reply(get_text("q_anonymity"), keyboards.anonymity_keyboard())
        return StepOutcome.ADVANCED
