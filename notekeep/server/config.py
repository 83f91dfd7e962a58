"""Server configuration.

Configuration is read from `<config_dir>/config.yaml` when present and then
overridden by `NOTEKEEP_*` environment variables. The file is never written.
"""

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

import yaml
from mashumaro.mixins.dict import DataClassDictMixin

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"
DEFAULT_SESSION_TTL = 7 * 24 * 60 * 60


@dataclass
class AuthConfig(DataClassDictMixin):
    """Authentication and session settings."""

    secret_key: str = ""
    """Key used to sign session tokens. Generated in memory when empty."""

    session_ttl: int = DEFAULT_SESSION_TTL
    """Session lifetime in seconds."""

    cookie_name: str = "notekeep_session"
    cookie_secure: bool = False

    allow_auto_verify: bool = True
    """Expose /auth/auto-verify, a development bypass of email confirmation."""

    password_iterations: int = 260_000
    """PBKDF2 iterations for new password hashes."""


@dataclass
class CorsConfig(DataClassDictMixin):
    """Cross-origin settings for browser clients."""

    allowed_origins: list[str] = field(
        default_factory=lambda: [
            "http://localhost:81",
            "http://127.0.0.1:81",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        ]
    )
    default_origin: str = "http://localhost:81"
    """Origin echoed back when the caller's origin is not allow-listed."""


@dataclass
class ServerConfig(DataClassDictMixin):
    """Top level server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    database_url: str = "sqlite+aiosqlite:///./notekeep.db"
    trace_log_file: str | None = None
    """Append one JSON line per request to this file when set."""

    outbox_dir: str = "var/emails"
    """Directory where outgoing confirmation emails are written."""

    public_url: str = "http://localhost:81"
    """Base URL used to build links inside emails."""

    auth: AuthConfig = field(default_factory=AuthConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)

    @classmethod
    def load(cls, config_dir: Path | str | None = None) -> Self:
        """Load the configuration from a directory and the environment."""
        data: dict = {}
        if config_dir is not None:
            config_file = Path(config_dir) / CONFIG_FILE_NAME
            if config_file.exists():
                with open(config_file) as f:
                    data = yaml.safe_load(f) or {}
                logger.info("Loaded configuration from %s", config_file)

        config = cls.from_dict(data)
        config._apply_env()
        if not config.auth.secret_key:
            logger.warning(
                "No secret key configured; sessions will not survive a restart"
            )
            config.auth.secret_key = secrets.token_hex(32)
        return config

    def _apply_env(self) -> None:
        if host := os.environ.get("NOTEKEEP_HOST"):
            self.host = host
        if port := os.environ.get("NOTEKEEP_PORT"):
            self.port = int(port)
        if database_url := os.environ.get("NOTEKEEP_DATABASE_URL"):
            self.database_url = database_url
        if secret := os.environ.get("NOTEKEEP_JWT_SECRET"):
            self.auth.secret_key = secret
        if allow := os.environ.get("NOTEKEEP_ALLOW_AUTO_VERIFY"):
            self.auth.allow_auto_verify = allow.lower() in ("1", "true", "yes")
