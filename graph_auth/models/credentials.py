from __future__ import annotations

from dataclasses import dataclass, field

from graph_auth.core.config import Settings
from graph_auth.core.errors import ConfigError


@dataclass(frozen=True, slots=True)
class AppCredentials:
    app_id: str
    app_secret: str | bytes = field(repr=False)
    callback_url: str | None = None

    @property
    def secret_bytes(self) -> bytes:
        if isinstance(self.app_secret, bytes):
            return self.app_secret
        return self.app_secret.encode("utf-8")

    @property
    def secret_str(self) -> str:
        if isinstance(self.app_secret, bytes):
            return self.app_secret.decode("utf-8")
        return self.app_secret

    @staticmethod
    def from_settings(settings: Settings) -> AppCredentials:
        if not settings.app_id or not settings.app_secret:
            raise ConfigError("GRAPH_APP_ID and GRAPH_APP_SECRET must both be set")
        return AppCredentials(
            app_id=settings.app_id,
            app_secret=settings.app_secret,
            callback_url=settings.callback_url,
        )
