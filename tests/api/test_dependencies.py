from __future__ import annotations

import hashlib

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from graph_auth.api.dependencies import require_session, session_dependency
from graph_auth.core.config import Settings
from graph_auth.models.credentials import AppCredentials
from graph_auth.models.session import SessionInfo
from graph_auth.oauth import GraphOAuth
from graph_auth.services.signed_request import sign_envelope
from tests.conftest import APP_ID, APP_SECRET, FakeHttpService


def _legacy_cookie(**components: str) -> str:
    canonical = "".join(f"{k}={components[k]}" for k in sorted(components))
    sig = hashlib.md5((canonical + APP_SECRET).encode()).hexdigest()
    return "&".join(f"{k}={v}" for k, v in {**components, "sig": sig}.items())


@pytest.fixture
def oauth(credentials: AppCredentials, fake_http: FakeHttpService, settings: Settings) -> GraphOAuth:
    return GraphOAuth(credentials, fake_http, settings=settings)


@pytest.fixture
def client(oauth: GraphOAuth) -> TestClient:
    app = FastAPI()
    current_session = session_dependency(oauth)

    @app.get("/whoami")
    def whoami(session: SessionInfo | None = Depends(current_session)) -> dict:
        return {"user_id": session.user_id if session else None}

    guarded = require_session(oauth)

    @app.get("/private")
    def private(session: SessionInfo = Depends(guarded)) -> dict:
        return {"user_id": session.user_id, "source": session.source}

    return TestClient(app)


def test_anonymous_request_has_no_session(client: TestClient) -> None:
    assert client.get("/whoami").json() == {"user_id": None}


def test_require_session_rejects_anonymous(client: TestClient) -> None:
    resp = client.get("/private")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_legacy_cookie_authenticates(client: TestClient) -> None:
    client.cookies.set(f"fbs_{APP_ID}", _legacy_cookie(access_token="AAA", expires="0", uid="42"))
    resp = client.get("/private")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": "42", "source": "legacy"}


def test_signed_cookie_authenticates(client: TestClient, fake_http: FakeHttpService) -> None:
    fake_http.queue("access_token=AAA&expires=3600")
    client.cookies.set(f"fbsr_{APP_ID}", sign_envelope({"code": "c", "user_id": "7"}, APP_SECRET))
    resp = client.get("/private")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": "7", "source": "signed"}


def test_forged_signed_cookie_is_treated_as_anonymous(client: TestClient) -> None:
    client.cookies.set(f"fbsr_{APP_ID}", sign_envelope({"code": "c", "user_id": "7"}, "wrong"))
    assert client.get("/whoami").json() == {"user_id": None}
    assert client.get("/private").status_code == 401
