"""Bot configuration settings.

BotSettings is the single configuration object accepted by create_app().
It is a plain dataclass (not env-coupled) so tests can inject config
without touching os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .providers.issuer_client import DEFAULT_ISSUER_BASE_URL, DEFAULT_ISSUER_PATH
from .providers.telegram_client import DEFAULT_TELEGRAM_API_URL

ENVIRONMENTS = ("local", "staging", "production")


@dataclass(frozen=True, slots=True)
class BotSettings:
    """Configuration for the bot's FastAPI application.

    All fields have defaults suitable for local development. Non-local
    environments must supply a real bot_token.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = "local"
    """One of: local, staging, production."""

    port: int = 3000

    public_url: str = ""
    """Externally reachable base URL. When set, the webhook is registered
    with Telegram at startup."""

    # ── Telegram ───────────────────────────────────────────────────
    bot_token: str = ""
    """Bot API token. Also the secret part of the webhook path. Never log this."""

    telegram_api_url: str = DEFAULT_TELEGRAM_API_URL

    bot_username: str = ""
    """Username that `/uid@<name>` must address. Looked up with getMe at
    startup when empty."""

    # ── Issuer ─────────────────────────────────────────────────────
    issuer_base_url: str = DEFAULT_ISSUER_BASE_URL
    issuer_path: str = DEFAULT_ISSUER_PATH

    http_timeout_seconds: float = 30.0
    """Timeout of the shared httpx client (issuer and Telegram)."""

    # ── Scratch storage / cleanup ──────────────────────────────────
    scratch_root: Path | None = None
    """Parent directory for per-request scratch areas (system temp if None)."""

    cleanup_delay_seconds: float = 10.0
    status_retire_delay_seconds: float = 10.0

    @property
    def is_local(self) -> bool:
        return self.environment == "local"

    @property
    def webhook_path(self) -> str:
        return f"/webhook/{self.bot_token}"

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.environment not in ENVIRONMENTS:
            errors.append(
                f"environment must be one of {', '.join(ENVIRONMENTS)}, "
                f"got {self.environment!r}"
            )
        if not self.is_local and not self.bot_token:
            errors.append(f"{self.environment}: bot_token is required")
        if self.public_url and not self.bot_token:
            errors.append("public_url requires bot_token for webhook registration")
        if self.http_timeout_seconds <= 0:
            errors.append("http_timeout_seconds must be > 0")
        if self.cleanup_delay_seconds < 0:
            errors.append("cleanup_delay_seconds must be >= 0")
        if self.status_retire_delay_seconds < 0:
            errors.append("status_retire_delay_seconds must be >= 0")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> BotSettings:
        """Build settings from environment variables.

        This is a convenience factory for production use. Tests should
        construct BotSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        scratch_raw = env.get("SCRATCH_ROOT", "").strip()

        return cls(
            environment=env.get("ENVIRONMENT", "local").strip().lower(),
            port=_int(env, "PORT", 3000),
            public_url=env.get("PUBLIC_URL", "").strip().rstrip("/"),
            bot_token=env.get("BOT_TOKEN", ""),
            telegram_api_url=env.get("TELEGRAM_API_URL", DEFAULT_TELEGRAM_API_URL),
            bot_username=env.get("BOT_USERNAME", "").strip().lstrip("@"),
            issuer_base_url=env.get("ISSUER_BASE_URL", DEFAULT_ISSUER_BASE_URL),
            issuer_path=env.get("ISSUER_PATH", DEFAULT_ISSUER_PATH),
            http_timeout_seconds=_float(env, "HTTP_TIMEOUT_SECONDS", 30.0),
            scratch_root=Path(scratch_raw) if scratch_raw else None,
            cleanup_delay_seconds=_float(env, "CLEANUP_DELAY_SECONDS", 10.0),
            status_retire_delay_seconds=_float(env, "STATUS_RETIRE_DELAY_SECONDS", 10.0),
        )


def _int(env: dict[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {key}; must be an integer") from exc


def _float(env: dict[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {key}; must be a number") from exc
