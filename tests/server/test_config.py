from collections.abc import Generator
from pathlib import Path

import pytest
import yaml

from notekeep.server.config import ServerConfig


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for name in (
        "NOTEKEEP_HOST",
        "NOTEKEEP_PORT",
        "NOTEKEEP_DATABASE_URL",
        "NOTEKEEP_JWT_SECRET",
        "NOTEKEEP_ALLOW_AUTO_VERIFY",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


def test_server_config_defaults(tmp_path: Path) -> None:
    """Test loading configuration with defaults."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    config = ServerConfig.load(config_dir)

    assert config.host == "0.0.0.0"
    assert config.port == 8080
    assert config.database_url == "sqlite+aiosqlite:///./notekeep.db"
    assert config.auth.secret_key != ""  # Should be generated in-memory
    assert config.auth.session_ttl == 7 * 24 * 60 * 60
    assert config.auth.allow_auto_verify
    assert config.cors.default_origin == "http://localhost:81"
    assert "http://127.0.0.1:8080" in config.cors.allowed_origins

    # Verify NO config file was created (read-only)
    assert not (config_dir / "config.yaml").exists()


def test_server_config_without_dir() -> None:
    config = ServerConfig.load(None)
    assert config.port == 8080


def test_server_config_load_from_file(tmp_path: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    data = {
        "host": "127.0.0.1",
        "port": 9090,
        "public_url": "https://notes.example.com",
        "auth": {"secret_key": "my-secret-key", "allow_auto_verify": False},
        "cors": {
            "allowed_origins": ["https://notes.example.com"],
            "default_origin": "https://notes.example.com",
        },
    }
    with open(config_dir / "config.yaml", "w") as f:
        yaml.safe_dump(data, f)

    config = ServerConfig.load(config_dir)

    assert config.host == "127.0.0.1"
    assert config.port == 9090
    assert config.public_url == "https://notes.example.com"
    assert config.auth.secret_key == "my-secret-key"
    assert not config.auth.allow_auto_verify
    assert config.cors.allowed_origins == ["https://notes.example.com"]


def test_server_config_env_overrides(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with open(config_dir / "config.yaml", "w") as f:
        yaml.safe_dump({"port": 9090, "auth": {"secret_key": "from-file"}}, f)

    monkeypatch.setenv("NOTEKEEP_PORT", "7070")
    monkeypatch.setenv("NOTEKEEP_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("NOTEKEEP_JWT_SECRET", "from-env")
    monkeypatch.setenv("NOTEKEEP_ALLOW_AUTO_VERIFY", "false")

    config = ServerConfig.load(config_dir)

    assert config.port == 7070
    assert config.database_url == "sqlite+aiosqlite:///:memory:"
    assert config.auth.secret_key == "from-env"
    assert not config.auth.allow_auto_verify
