from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError


def test_package_imports() -> None:
    import relay.handler  # noqa: F401
    import relay.server  # noqa: F401


def test_readme_exists() -> None:
    assert Path("README.md").exists()


def test_load_config_missing_file_returns_defaults(tmp_path: Path, monkeypatch) -> None:
    from relay.config import load_config

    for key in ("BOT_TOKEN", "TELEGRAM_SECRET_TOKEN", "TELEGRAM_API_BASE", "RELAY_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)

    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.telegram.token == ""
    assert cfg.telegram.api_base == "https://api.telegram.org"
    assert cfg.relay.update_kinds == ["message", "edited_message", "channel_post", "edited_channel_post"]
    assert cfg.relay.strategy == "copy"
    assert cfg.relay.max_media_duration is None
    assert cfg.server.paths == ["/", "/webhook"]


def test_load_config_reads_yaml(tmp_path: Path, monkeypatch) -> None:
    from relay.config import load_config

    monkeypatch.delenv("BOT_TOKEN", raising=False)
    config_path = tmp_path / "config.yaml"
    data = {
        "telegram": {"token": "file-token", "request_timeout": 5},
        "relay": {"max_media_duration": 300, "strategies": {"video_note": "reupload"}},
        "server": {"port": 9000},
    }
    config_path.write_text(yaml.safe_dump(data))

    cfg = load_config(config_path)
    assert cfg.telegram.token == "file-token"
    assert cfg.telegram.request_timeout == 5
    assert cfg.relay.max_media_duration == 300
    assert cfg.server.port == 9000


def test_env_overrides_file_secrets(tmp_path: Path, monkeypatch) -> None:
    from relay.config import load_config

    config_path = tmp_path / "config.yaml"
    config_path.write_text("telegram:\nlogging:\n  level: INFO\n")
    monkeypatch.setenv("BOT_TOKEN", "env-token")
    monkeypatch.setenv("TELEGRAM_SECRET_TOKEN", "env-secret")
    monkeypatch.setenv("RELAY_LOG_LEVEL", "DEBUG")

    cfg = load_config(config_path)
    assert cfg.telegram.token == "env-token"
    assert cfg.telegram.secret_token == "env-secret"
    assert cfg.logging.level == "DEBUG"


def test_missing_token_is_a_startup_error() -> None:
    from relay.config import Config, ConfigError

    with pytest.raises(ConfigError, match="token"):
        Config().validate_for_startup()
    Config(telegram={"token": "t"}).validate_for_startup()


def test_unknown_update_kind_is_rejected() -> None:
    from relay.config import RelayConfig

    with pytest.raises(ValidationError):
        RelayConfig(update_kinds=["callback_query"])
