from __future__ import annotations

from typing import Any

import pytest

from relay.config import Config
from relay.telegram.client import ApiResult


class StubTelegramClient:
    """Records Bot API calls instead of sending them."""

    def __init__(self, fail: set[str] | None = None, raise_on: set[str] | None = None):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail or set()
        self.raise_on = raise_on or set()

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def payload(self, method: str) -> dict[str, Any]:
        for name, kwargs in self.calls:
            if name == method:
                return kwargs
        raise AssertionError(f"{method} was not called (calls: {self.methods})")

    async def _record(self, method: str, **kwargs: Any) -> ApiResult:
        self.calls.append((method, kwargs))
        if method in self.raise_on:
            raise RuntimeError(f"{method} exploded")
        if method in self.fail:
            return ApiResult(method=method, ok=False, error="Internal Server Error", status_code=500)
        return ApiResult(method=method, ok=True, result={"message_id": 999}, status_code=200)

    async def copy_message(self, chat_id: int, from_chat_id: int, message_id: int, caption: str | None = None) -> ApiResult:
        return await self._record(
            "copyMessage", chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id, caption=caption,
        )

    async def send_message(self, chat_id: int, text: str) -> ApiResult:
        return await self._record("sendMessage", chat_id=chat_id, text=text)

    async def delete_message(self, chat_id: int, message_id: int) -> ApiResult:
        return await self._record("deleteMessage", chat_id=chat_id, message_id=message_id)


@pytest.fixture
def stub_client() -> StubTelegramClient:
    return StubTelegramClient()


@pytest.fixture
def config() -> Config:
    return Config(telegram={"token": "123:test-token"})


def make_update(kind: str = "message", update_id: int = 1, **fields: Any) -> dict[str, Any]:
    message = {"message_id": 42, "chat": {"id": -100500, "type": "supergroup"}, "date": 1700000000}
    message.update(fields)
    return {"update_id": update_id, kind: message}
