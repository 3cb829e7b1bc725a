from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Ensure repo root is on sys.path so `import graph_auth` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from graph_auth.core.config import Settings  # noqa: E402
from graph_auth.models.credentials import AppCredentials  # noqa: E402
from graph_auth.services.http import HttpMethod, HttpResponse, RequestOptions  # noqa: E402
from graph_auth.services.token_exchange import TokenExchangeClient  # noqa: E402

APP_ID = "123456"
APP_SECRET = "0123456789abcdef-app-secret"
CALLBACK_URL = "https://app.example.com/oauth/callback"


@dataclass
class RecordedCall:
    path: str
    params: dict[str, Any]
    method: HttpMethod
    options: RequestOptions


@dataclass
class FakeHttpService:
    """In-memory HttpService: replays queued bodies, records every call."""

    bodies: list[str] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)

    def queue(self, *bodies: str) -> FakeHttpService:
        self.bodies.extend(bodies)
        return self

    def perform(
        self,
        path: str,
        params: Mapping[str, Any],
        method: HttpMethod,
        options: RequestOptions,
    ) -> HttpResponse:
        self.calls.append(RecordedCall(path, dict(params), method, options))
        body = self.bodies.pop(0) if self.bodies else ""
        return HttpResponse(status_code=200, body=body)

    @property
    def last_call(self) -> RecordedCall:
        return self.calls[-1]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        log_level="info",
        log_json=False,
        graph_server="graph.example.com",
        dialog_host="www.example.com",
        http_timeout=5.0,
        app_id=APP_ID,
        callback_url=CALLBACK_URL,
        app_secret=APP_SECRET,
    )


@pytest.fixture
def credentials() -> AppCredentials:
    return AppCredentials(app_id=APP_ID, app_secret=APP_SECRET, callback_url=CALLBACK_URL)


@pytest.fixture
def fake_http() -> FakeHttpService:
    return FakeHttpService()


@pytest.fixture
def token_client(credentials: AppCredentials, fake_http: FakeHttpService) -> TokenExchangeClient:
    return TokenExchangeClient(credentials, fake_http)
