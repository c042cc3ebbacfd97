"""Minimal async Telegram Bot API client over httpx."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

DEFAULT_API_BASE = "https://api.telegram.org"


class TelegramAPIError(Exception):
    """A Bot API call that did not return ok."""

    def __init__(self, method: str, description: str, status_code: int | None = None):
        super().__init__(f"Telegram API error: {method}: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


@dataclass
class ApiResult:
    """Outcome of one Bot API call. Failures are values, not exceptions."""
    method: str
    ok: bool
    result: Any = None
    error: str | None = None
    status_code: int | None = None

    def raise_for_error(self) -> Any:
        if not self.ok:
            raise TelegramAPIError(self.method, self.error or "unknown error", self.status_code)
        return self.result


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


class TelegramClient:
    """Bot API client bound to one bot token."""

    def __init__(
        self,
        token: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ValueError("Telegram bot token is required")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> TelegramClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    def _file_url(self, file_path: str) -> str:
        return f"{self._api_base}/file/bot{self._token}/{file_path.lstrip('/')}"

    async def call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        files: dict[str, tuple[str, bytes]] | None = None,
    ) -> ApiResult:
        """POST a Bot API method. JSON body, or multipart when files are given."""
        payload = _compact(payload or {})
        try:
            if files:
                data = {k: str(v) for k, v in payload.items()}
                resp = await self._http.post(self._method_url(method), data=data, files=files)
            else:
                resp = await self._http.post(self._method_url(method), json=payload)
        except httpx.HTTPError as e:
            logger.debug(f"Telegram {method}: transport error: {e!r}")
            return ApiResult(method=method, ok=False, error=f"{type(e).__name__}: {e}")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_success and isinstance(data, dict) and data.get("ok"):
            return ApiResult(method=method, ok=True, result=data.get("result"), status_code=resp.status_code)

        description = data.get("description") if isinstance(data, dict) else None
        error = description or f"HTTP {resp.status_code}"
        logger.debug(f"Telegram {method} failed: {error}")
        return ApiResult(method=method, ok=False, error=error, status_code=resp.status_code)

    async def copy_message(
        self, chat_id: int, from_chat_id: int, message_id: int, caption: str | None = None,
    ) -> ApiResult:
        return await self.call("copyMessage", {
            "chat_id": chat_id,
            "from_chat_id": from_chat_id,
            "message_id": message_id,
            "caption": caption or None,
        })

    async def send_message(self, chat_id: int, text: str) -> ApiResult:
        return await self.call("sendMessage", {"chat_id": chat_id, "text": text})

    async def send_media(
        self,
        method: str,
        field: str,
        chat_id: int,
        content: bytes,
        filename: str,
        caption: str | None = None,
    ) -> ApiResult:
        """Upload raw bytes with sendPhoto/sendVideo/sendDocument and friends."""
        return await self.call(
            method,
            {"chat_id": chat_id, "caption": caption or None},
            files={field: (filename, content)},
        )

    async def get_file(self, file_id: str) -> ApiResult:
        return await self.call("getFile", {"file_id": file_id})

    async def download_file(self, file_path: str, max_bytes: int | None = None) -> ApiResult:
        """Download a file returned by getFile, aborting past max_bytes."""
        method = "downloadFile"
        chunks: list[bytes] = []
        total = 0
        try:
            async with self._http.stream("GET", self._file_url(file_path)) as resp:
                if not resp.is_success:
                    return ApiResult(
                        method=method, ok=False,
                        error=f"HTTP {resp.status_code}", status_code=resp.status_code,
                    )
                async for chunk in resp.aiter_bytes():
                    total += len(chunk)
                    if max_bytes is not None and total > max_bytes:
                        return ApiResult(
                            method=method, ok=False,
                            error=f"file exceeds {max_bytes} bytes", status_code=resp.status_code,
                        )
                    chunks.append(chunk)
        except httpx.HTTPError as e:
            return ApiResult(method=method, ok=False, error=f"{type(e).__name__}: {e}")
        return ApiResult(method=method, ok=True, result=b"".join(chunks), status_code=200)

    async def delete_message(self, chat_id: int, message_id: int) -> ApiResult:
        return await self.call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def get_me(self) -> ApiResult:
        return await self.call("getMe")

    async def set_webhook(
        self,
        url: str,
        secret_token: str | None = None,
        allowed_updates: list[str] | None = None,
        drop_pending_updates: bool = False,
    ) -> ApiResult:
        return await self.call("setWebhook", {
            "url": url,
            "secret_token": secret_token or None,
            "allowed_updates": allowed_updates,
            "drop_pending_updates": drop_pending_updates or None,
        })

    async def get_webhook_info(self) -> ApiResult:
        return await self.call("getWebhookInfo")

    async def delete_webhook(self, drop_pending_updates: bool = False) -> ApiResult:
        return await self.call("deleteWebhook", {"drop_pending_updates": drop_pending_updates or None})
