# participium_bot/core/engine/photo_collector.py
"""
Photo intake for the WAITING_PHOTOS step.

The draft is never touched unless the whole sequence succeeds:
capacity check → download through the gateway → validation → capacity
re-check → append.
"""
from __future__ import annotations

from participium_bot.core.engine.domain import InlinePhoto, MediaItem, ReportDraft, MAX_PHOTOS
from participium_bot.core.engine.errors import PhotoLimitReachedError
from participium_bot.core.engine.ports import ChatGateway
from participium_bot.infra.image_processor import to_inline_photo
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


class PhotoCollector:
    def __init__(self, gateway: ChatGateway, max_size_bytes: int) -> None:
        self.gateway = gateway
        self.max_size_bytes = max_size_bytes

    async def add_photo(self, draft: ReportDraft, media: MediaItem) -> InlinePhoto:
        """
        Download, validate and append one photo.

        Raises:
            PhotoLimitReachedError: Draft already holds MAX_PHOTOS
            MediaFetchError: Download failed
            UnsupportedMediaError / CorruptMediaError: Bytes rejected
        """
        if not draft.has_room_for_photo():
            raise PhotoLimitReachedError(f"Draft already has {MAX_PHOTOS} photos")

        data = await self.gateway.download_file(media.file_id)
        photo = to_inline_photo(data, self.max_size_bytes)

        # Another update may have filled the draft while we were downloading.
        if not draft.has_room_for_photo():
            raise PhotoLimitReachedError(f"Draft already has {MAX_PHOTOS} photos")

        draft.photos.append(photo)
        logger.info(
            "Photo accepted: %s, %d bytes (%d/%d)",
            photo.mime_type, photo.size_bytes, draft.photo_count, MAX_PHOTOS,
        )
        return photo
