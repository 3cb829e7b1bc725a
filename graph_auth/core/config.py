from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_GRAPH_SERVER = "graph.facebook.com"
DEFAULT_DIALOG_HOST = "www.facebook.com"


def _getenv(name: str, default: str) -> str:
    # Centralize env access so casting and validation live in one place
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    graph_server: str
    dialog_host: str
    http_timeout: float
    app_id: str | None
    callback_url: str | None
    # app_secret must never end up in logs or tracebacks
    app_secret: str | None = field(default=None, repr=False)

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
    timeout_raw = _getenv("HTTP_TIMEOUT", "10")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        http_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(f"HTTP_TIMEOUT must be a number (got {timeout_raw!r})") from None

    if http_timeout <= 0:
        raise ValueError(f"HTTP_TIMEOUT must be positive (got {timeout_raw!r})")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        graph_server=_getenv("GRAPH_SERVER", DEFAULT_GRAPH_SERVER) or DEFAULT_GRAPH_SERVER,
        dialog_host=_getenv("DIALOG_HOST", DEFAULT_DIALOG_HOST) or DEFAULT_DIALOG_HOST,
        http_timeout=http_timeout,
        app_id=_getenv("GRAPH_APP_ID", "") or None,
        app_secret=_getenv("GRAPH_APP_SECRET", "") or None,
        callback_url=_getenv("GRAPH_CALLBACK_URL", "") or None,
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
