"""Strategies for reposting a media message into its own chat."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from loguru import logger

from relay.config import RelayConfig
from relay.telegram.client import ApiResult, TelegramClient
from relay.telegram.events import MediaKind, Message

# kind -> (upload method, multipart field, accepts caption)
_UPLOAD_METHODS: dict[MediaKind, tuple[str, str, bool]] = {
    MediaKind.PHOTO: ("sendPhoto", "photo", True),
    MediaKind.VIDEO: ("sendVideo", "video", True),
    MediaKind.ANIMATION: ("sendAnimation", "animation", True),
    MediaKind.AUDIO: ("sendAudio", "audio", True),
    MediaKind.VOICE: ("sendVoice", "voice", True),
    MediaKind.DOCUMENT: ("sendDocument", "document", True),
    MediaKind.STICKER: ("sendSticker", "sticker", False),
    MediaKind.VIDEO_NOTE: ("sendVideoNote", "video_note", False),
}

_DEFAULT_FILENAMES = {
    MediaKind.PHOTO: "photo.jpg",
    MediaKind.VIDEO: "video.mp4",
    MediaKind.ANIMATION: "animation.mp4",
    MediaKind.AUDIO: "audio.mp3",
    MediaKind.VOICE: "voice.ogg",
    MediaKind.STICKER: "sticker.webp",
    MediaKind.VIDEO_NOTE: "video_note.mp4",
}


class RepublishStrategy(ABC):
    """Reposts a media message into the chat it came from."""

    name: str = "base"

    @abstractmethod
    async def republish(
        self, client: TelegramClient, message: Message, caption: str | None,
    ) -> ApiResult:
        pass


class CopyStrategy(RepublishStrategy):
    """copyMessage onto the same chat: one round trip, media type preserved."""

    name = "copy"

    async def republish(
        self, client: TelegramClient, message: Message, caption: str | None,
    ) -> ApiResult:
        return await client.copy_message(
            chat_id=message.chat_id,
            from_chat_id=message.chat_id,
            message_id=message.message_id,
            caption=caption or None,
        )


class ReuploadStrategy(RepublishStrategy):
    """Download the file via getFile and upload the bytes again."""

    name = "reupload"

    def __init__(self, max_bytes: int, as_document: bool = False):
        self.max_bytes = max_bytes
        self.as_document = as_document

    def upload_target(self, kind: MediaKind) -> tuple[str, str, bool]:
        if self.as_document:
            return _UPLOAD_METHODS[MediaKind.DOCUMENT]
        return _UPLOAD_METHODS.get(kind, _UPLOAD_METHODS[MediaKind.DOCUMENT])

    async def republish(
        self, client: TelegramClient, message: Message, caption: str | None,
    ) -> ApiResult:
        media = message.media
        if media is None:
            return ApiResult(method="reupload", ok=False, error="message has no media")
        if not media.file_id:
            return ApiResult(method="reupload", ok=False, error=f"{media.kind.value} has no file_id")
        if media.file_size and media.file_size > self.max_bytes:
            return ApiResult(
                method="reupload", ok=False,
                error=f"{media.kind.value} is {media.file_size} bytes, limit is {self.max_bytes}",
            )

        file_info = await client.get_file(media.file_id)
        if not file_info.ok:
            return file_info
        file_path = (file_info.result or {}).get("file_path")
        if not file_path:
            return ApiResult(method="getFile", ok=False, error="no file_path in getFile result")

        downloaded = await client.download_file(file_path, max_bytes=self.max_bytes)
        if not downloaded.ok:
            return downloaded
        logger.debug(f"Downloaded {len(downloaded.result)} bytes of {media.kind.value} for {message.ref}")

        method, field, accepts_caption = self.upload_target(media.kind)
        filename = media.file_name or PurePosixPath(file_path).name or _DEFAULT_FILENAMES.get(media.kind, "file")
        return await client.send_media(
            method=method,
            field=field,
            chat_id=message.chat_id,
            content=downloaded.result,
            filename=filename,
            caption=caption if accepts_caption else None,
        )


def build_strategies(config: RelayConfig) -> dict[MediaKind, RepublishStrategy]:
    """Map each media kind to the strategy the config selects for it."""
    copy = CopyStrategy()
    reupload = ReuploadStrategy(
        max_bytes=config.max_download_bytes,
        as_document=config.reupload_as_document,
    )
    by_name: dict[str, RepublishStrategy] = {copy.name: copy, reupload.name: reupload}
    return {kind: by_name[config.strategy_for(kind)] for kind in MediaKind}
