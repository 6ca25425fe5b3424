from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    reference_tz: str = "UTC"
    gateway_timeout_seconds: float = 5.0
    grader_url: str | None = None
    jwt_public_key: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")
    tz_raw = _getenv("REFERENCE_TZ", "UTC")
    timeout_raw = _getenv("GATEWAY_TIMEOUT_SECONDS", "5.0")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0", "yes", "no"):
        raise ValueError(f"LOG_JSON must be a boolean (got {log_json_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    # Every day-key depends on this zone, so reject typos at startup.
    try:
        ZoneInfo(tz_raw)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"REFERENCE_TZ must be an IANA zone (got {tz_raw!r})") from None

    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"GATEWAY_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if timeout <= 0:
        raise ValueError(f"GATEWAY_TIMEOUT_SECONDS must be > 0 (got {timeout_raw!r})")

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None
    grader_url = _getenv("GRADER_URL", "") or None
    jwt_public_key = _getenv("JWT_PUBLIC_KEY", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1", "yes"),
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        reference_tz=tz_raw,
        gateway_timeout_seconds=timeout,
        grader_url=grader_url,
        jwt_public_key=jwt_public_key,
    )


SETTINGS = load_settings()
