"""relay - Entry point. Serves the webhook and manages its registration."""

import asyncio
import os
import sys
from pathlib import Path

from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from relay.config import Config, ConfigError, load_config
from relay.telegram.client import TelegramAPIError, TelegramClient
from relay.utils.logger import setup_logging

console = Console()


def _default_config_path() -> str:
    return os.environ.get("RELAY_CONFIG_PATH", "config.yaml")


def _load_checked_config(config_path: str) -> Config:
    config = load_config(config_path)
    config.validate_for_startup()
    return config


def _client_for(config: Config) -> TelegramClient:
    return TelegramClient(
        config.telegram.token,
        api_base=config.telegram.api_base,
        timeout=config.telegram.request_timeout,
    )


async def _check(config: Config) -> int:
    async with _client_for(config) as client:
        bot = (await client.get_me()).raise_for_error()
    console.print(f"[green]v[/green] Token OK: {bot.get('first_name', '')} (@{bot.get('username', '')})")
    return 0


async def _webhook_set(config: Config, url: str) -> int:
    if not url.startswith("https://"):
        console.print("[yellow]Telegram only delivers webhooks to https:// URLs[/yellow]")
    if not config.telegram.secret_token:
        console.print("[yellow]No secret token configured; webhook calls will not be authenticated[/yellow]")
    async with _client_for(config) as client:
        (await client.set_webhook(
            url,
            secret_token=config.telegram.secret_token,
            allowed_updates=list(config.relay.update_kinds),
        )).raise_for_error()
    console.print(f"[green]v[/green] Webhook set to {url}")
    return 0


async def _webhook_info(config: Config) -> int:
    async with _client_for(config) as client:
        info = (await client.get_webhook_info()).raise_for_error() or {}
    table = Table(title="Webhook")
    table.add_column("Field")
    table.add_column("Value")
    for key in ("url", "pending_update_count", "last_error_message", "allowed_updates", "max_connections"):
        if key in info:
            table.add_row(key, str(info[key]))
    console.print(table)
    return 0


async def _webhook_delete(config: Config) -> int:
    async with _client_for(config) as client:
        (await client.delete_webhook()).raise_for_error()
    console.print("[green]v[/green] Webhook removed")
    return 0


def _run_webhook_command(args: list[str], default_config: str) -> int:
    """Handle: relay webhook <set <url>|info|delete> [config_path]."""
    if not args or args[0] not in {"set", "info", "delete"}:
        print("Usage: relay webhook <set <url>|info|delete> [config]")
        return 2
    action = args[0]
    if action == "set":
        if len(args) < 2:
            print("Usage: relay webhook set <url> [config]")
            return 2
        url = args[1]
        config_path = args[2] if len(args) > 2 else default_config
    else:
        url = ""
        config_path = args[1] if len(args) > 1 else default_config

    config = _load_checked_config(config_path)
    if action == "set":
        return asyncio.run(_webhook_set(config, url))
    if action == "info":
        return asyncio.run(_webhook_info(config))
    return asyncio.run(_webhook_delete(config))


def _print_main_usage() -> None:
    print("relay commands:")
    print("  relay run [config]              # serve the webhook (foreground)")
    print("  relay check [config]            # verify the bot token")
    print("  relay webhook set <url> [config]")
    print("  relay webhook info [config]")
    print("  relay webhook delete [config]")


def main():
    """CLI entry point."""
    args = sys.argv[1:]
    default_config = _default_config_path()

    if not args or args[0] in {"-h", "--help", "help"}:
        _print_main_usage()
        return

    command = args[0]
    try:
        if command == "webhook":
            raise SystemExit(_run_webhook_command(args[1:], default_config))

        config_path = args[1] if len(args) > 1 else default_config
        if command == "check":
            raise SystemExit(asyncio.run(_check(_load_checked_config(config_path))))

        if command in {"run", "serve"}:
            config = _load_checked_config(config_path)
            setup_logging(config.logging.level)
            logger.info(f"relay starting (config: {Path(config_path).expanduser()})")
            from relay.server import serve
            serve(config)
            return
    except (ConfigError, ValidationError) as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    except TelegramAPIError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    print(f"Unknown command: {command}")
    _print_main_usage()
    raise SystemExit(2)


if __name__ == "__main__":
    main()
