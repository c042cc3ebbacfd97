"""Webhook HTTP surface (FastAPI + uvicorn)."""

from __future__ import annotations

import hmac
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger

from relay.config import Config
from relay.handler import RelayHandler
from relay.telegram.client import TelegramClient

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def _secret_matches(header_value: str | None, secret: str) -> bool:
    if not header_value:
        return False
    return hmac.compare_digest(header_value.encode(), secret.encode())


def create_app(config: Config, handler: RelayHandler | None = None) -> FastAPI:
    """Build the webhook app. Without a handler one is built on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client: TelegramClient | None = None
        if getattr(app.state, "handler", None) is None:
            client = TelegramClient(
                config.telegram.token,
                api_base=config.telegram.api_base,
                timeout=config.telegram.request_timeout,
            )
            app.state.handler = RelayHandler(config, client)
        logger.info(f"Webhook listening on {', '.join(config.server.paths)}")
        try:
            yield
        finally:
            if client is not None:
                await client.close()

    app = FastAPI(title="relay", docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)
    app.state.handler = handler

    async def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    async def webhook(request: Request) -> PlainTextResponse:
        secret = config.telegram.secret_token
        if secret and not _secret_matches(request.headers.get(SECRET_HEADER), secret):
            logger.warning(f"Rejected webhook call on {request.url.path}: bad secret token")
            return PlainTextResponse("Unauthorized", status_code=401)

        body = await request.body()
        result = await request.app.state.handler.handle_body(body)
        logger.debug(f"Update handled: {result.status.value} ({result.reason})")
        # Telegram retries non-2xx deliveries, so everything past auth is 200.
        return PlainTextResponse(result.reason, status_code=200)

    for path in config.server.paths:
        app.add_api_route(path, health, methods=["GET"], include_in_schema=False)
        app.add_api_route(path, webhook, methods=["POST"], include_in_schema=False)

    return app


def serve(config: Config) -> None:
    """Run the webhook server in the foreground."""
    app = create_app(config)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
        log_config=None,
    )
