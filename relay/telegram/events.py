"""Read-only views over Telegram webhook updates."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Checked in this order; the first present field wins.
UPDATE_KINDS = ("message", "edited_message", "channel_post", "edited_channel_post")


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    AUDIO = "audio"
    VOICE = "voice"
    ANIMATION = "animation"
    STICKER = "sticker"
    VIDEO_NOTE = "video_note"


@dataclass(frozen=True)
class MediaRef:
    """A media attachment, reduced to what republishing needs."""
    kind: MediaKind
    file_id: str | None = None
    duration: int | None = None
    file_size: int | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class Message:
    """Message extracted from an update."""
    chat_id: int
    message_id: int
    text: str | None = None
    caption: str | None = None
    media: MediaRef | None = None
    update_kind: str = "message"

    @property
    def is_media(self) -> bool:
        return self.media is not None

    @property
    def ref(self) -> str:
        return f"{self.update_kind}:{self.chat_id}/{self.message_id}"


def _media_from(payload: dict[str, Any]) -> MediaRef | None:
    """Classify by presence of a media field, whether or not it is usable."""
    # Animations also carry a `document` field, so animation is checked first.
    order = (
        MediaKind.ANIMATION,
        MediaKind.PHOTO,
        MediaKind.VIDEO,
        MediaKind.VIDEO_NOTE,
        MediaKind.AUDIO,
        MediaKind.VOICE,
        MediaKind.STICKER,
        MediaKind.DOCUMENT,
    )
    for kind in order:
        raw = payload.get(kind.value)
        if raw is None:
            continue
        if kind is MediaKind.PHOTO and isinstance(raw, list):
            # Sizes are ordered smallest to largest.
            sizes = [size for size in raw if isinstance(size, dict)]
            raw = sizes[-1] if sizes else {}
        if not isinstance(raw, dict):
            raw = {}
        file_id = raw.get("file_id")
        return MediaRef(
            kind=kind,
            file_id=str(file_id) if file_id else None,
            duration=raw.get("duration"),
            file_size=raw.get("file_size"),
            file_name=raw.get("file_name"),
        )
    return None


def select_payload(
    update: dict[str, Any], kinds: tuple[str, ...] | list[str] = UPDATE_KINDS,
) -> tuple[str, Any] | None:
    """Return (kind, payload) for the first present message-like field.

    Presence stops the search even when the payload is empty or malformed,
    so a broken `message` is never shadowed by a later `channel_post`.
    """
    for kind in UPDATE_KINDS:
        if kind not in kinds:
            continue
        payload = update.get(kind)
        if payload is not None:
            return kind, payload
    return None


def extract_message(
    update: dict[str, Any], kinds: tuple[str, ...] | list[str] = UPDATE_KINDS,
) -> Message | None:
    """Build a Message from a raw update, or None when it is not addressable."""
    if not isinstance(update, dict):
        return None
    selected = select_payload(update, kinds)
    if selected is None:
        return None
    kind, payload = selected
    if not isinstance(payload, dict):
        return None

    chat = payload.get("chat")
    chat_id = chat.get("id") if isinstance(chat, dict) else None
    message_id = payload.get("message_id")
    if not chat_id or not message_id:
        return None

    text = payload.get("text")
    caption = payload.get("caption")
    return Message(
        chat_id=int(chat_id),
        message_id=int(message_id),
        text=text if isinstance(text, str) else None,
        caption=caption if isinstance(caption, str) else None,
        media=_media_from(payload),
        update_kind=kind,
    )
