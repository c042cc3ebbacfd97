"""Relay pipeline: classify an update, repost it scrubbed, delete the original."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger

from relay.config import Config
from relay.republish import RepublishStrategy, build_strategies
from relay.telegram.client import ApiResult, TelegramClient
from relay.telegram.events import MediaKind, Message, extract_message, select_payload
from relay.utils.text import sanitize_text

ErrorSink = Callable[[str, Any], None]

# Kinds whose payload carries a playback duration.
_TIMED_KINDS = {
    MediaKind.VIDEO,
    MediaKind.ANIMATION,
    MediaKind.VIDEO_NOTE,
    MediaKind.AUDIO,
    MediaKind.VOICE,
}


class RelayStatus(str, Enum):
    REPOSTED = "reposted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RelayResult:
    """What happened to one update. Every status maps to HTTP 200."""
    status: RelayStatus
    reason: str
    message_ref: str | None = None
    deleted: bool = False


def log_error(stage: str, error: Any) -> None:
    logger.error(f"Relay {stage} failed: {error}")


class RelayHandler:
    """Handles one webhook update at a time; holds no per-request state."""

    def __init__(
        self,
        config: Config,
        client: TelegramClient,
        strategies: dict[MediaKind, RepublishStrategy] | None = None,
        on_error: ErrorSink | None = None,
    ):
        self.config = config
        self.client = client
        self.strategies = strategies or build_strategies(config.relay)
        self.on_error = on_error or log_error

    async def handle_body(self, body: bytes) -> RelayResult:
        """Decode a raw request body and relay it."""
        try:
            update = json.loads(body)
        except (ValueError, RecursionError) as e:
            self._report("decode", e)
            return RelayResult(RelayStatus.FAILED, "malformed update body")
        return await self.handle(update)

    async def handle(self, update: Any) -> RelayResult:
        """Relay one decoded update. Never raises."""
        try:
            return await self._relay(update)
        except Exception as e:
            logger.exception(f"Unexpected error while relaying update: {e}")
            self._report("relay", e)
            return RelayResult(RelayStatus.FAILED, "error handled")

    async def _relay(self, update: Any) -> RelayResult:
        kinds = self.config.relay.update_kinds
        if not isinstance(update, dict) or select_payload(update, kinds) is None:
            logger.debug("Update carries no message to relay")
            return RelayResult(RelayStatus.SKIPPED, "no message in update")

        message = extract_message(update, kinds)
        if message is None:
            logger.debug("Update message has no chat/message id")
            return RelayResult(RelayStatus.SKIPPED, "missing chat/message id")

        if message.is_media:
            skip = self._media_skip_reason(message)
            if skip:
                logger.info(f"Ignoring {message.ref}: {skip}")
                return RelayResult(RelayStatus.SKIPPED, skip, message.ref)
            result = await self._republish_media(message)
        elif message.text is not None:
            cleaned = sanitize_text(message.text)
            if not cleaned:
                logger.debug(f"Nothing to repost for {message.ref}: empty after sanitize")
                return RelayResult(RelayStatus.SKIPPED, "empty after sanitize", message.ref)
            result = await self.client.send_message(message.chat_id, cleaned)
        else:
            logger.debug(f"Unhandled message type for {message.ref}")
            return RelayResult(RelayStatus.SKIPPED, "unhandled message type", message.ref)

        if not result.ok:
            self._report("republish", f"{result.method}: {result.error}")
            return RelayResult(RelayStatus.FAILED, "republish failed", message.ref)

        logger.info(f"Reposted {message.ref} via {result.method}")
        deleted = await self._delete_original(message)
        return RelayResult(RelayStatus.REPOSTED, "done", message.ref, deleted=deleted)

    def _media_skip_reason(self, message: Message) -> str | None:
        limit = self.config.relay.max_media_duration
        media = message.media
        if limit is None or media is None or media.kind not in _TIMED_KINDS:
            return None
        if media.duration is not None and media.duration > limit:
            return f"{media.kind.value} is {media.duration}s, limit is {limit}s"
        return None

    async def _republish_media(self, message: Message) -> ApiResult:
        caption = sanitize_text(message.caption)
        strategy = self.strategies[message.media.kind]
        logger.debug(f"Reposting {message.ref} ({message.media.kind.value}) with {strategy.name} strategy")
        return await strategy.republish(self.client, message, caption or None)

    async def _delete_original(self, message: Message) -> bool:
        if not self.config.relay.delete_original:
            return False
        try:
            result = await self.client.delete_message(message.chat_id, message.message_id)
        except Exception as e:
            logger.warning(f"Could not delete original {message.ref}: {e}")
            return False
        if not result.ok:
            logger.warning(f"Could not delete original {message.ref}: {result.error}")
        return result.ok

    def _report(self, stage: str, error: Any) -> None:
        try:
            self.on_error(stage, error)
        except Exception as e:
            logger.warning(f"Error sink raised while reporting {stage}: {e}")
