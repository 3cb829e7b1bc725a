"""GraphOAuth: one object per application, wrapping every OAuth helper.

    oauth = GraphOAuth(AppCredentials("1234", "s3cret", "https://app/cb"))
    oauth.url_for_oauth_code({"permissions": ["email", "user_likes"]})
    session = oauth.user_info_from_cookies(request.cookies)

The object holds only immutable credentials and settings plus an
HttpService, so one instance can be shared across threads.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from graph_auth.core.config import SETTINGS, Settings
from graph_auth.models.credentials import AppCredentials
from graph_auth.models.session import SessionInfo, SignedEnvelope
from graph_auth.models.token import AccessTokenInfo
from graph_auth.services import cookie_session, session_keys, url_builder
from graph_auth.services.http import HttpService, HttpxService, RequestOptions
from graph_auth.services.signed_request import parse_signed_request
from graph_auth.services.token_exchange import TokenExchangeClient


class GraphOAuth:
    def __init__(
        self,
        credentials: AppCredentials,
        http: HttpService | None = None,
        *,
        settings: Settings = SETTINGS,
    ) -> None:
        self.credentials = credentials
        self.settings = settings
        self.http = http if http is not None else HttpxService(settings)
        self.token_client = TokenExchangeClient(credentials, self.http)

    @classmethod
    def from_settings(cls, settings: Settings = SETTINGS, http: HttpService | None = None) -> GraphOAuth:
        return cls(AppCredentials.from_settings(settings), http, settings=settings)

    @property
    def app_id(self) -> str:
        return self.credentials.app_id

    # -- cookies ---------------------------------------------------------------

    def user_info_from_cookies(
        self, cookies: Mapping[str, str], *, now: int | None = None
    ) -> SessionInfo | None:
        return cookie_session.resolve_session(cookies, self.credentials, self.token_client, now=now)

    def user_from_cookies(self, cookies: Mapping[str, str], *, now: int | None = None) -> str | None:
        return cookie_session.user_from_cookies(cookies, self.credentials, self.token_client, now=now)

    def parse_signed_request(self, token: str) -> SignedEnvelope:
        return parse_signed_request(token, self.credentials.app_secret)

    # -- URLs ------------------------------------------------------------------

    def url_for_oauth_code(self, options: Mapping[str, Any] | None = None) -> str:
        return url_builder.url_for_oauth_code(self.credentials, options, settings=self.settings)

    def url_for_access_token(self, code: str, options: Mapping[str, Any] | None = None) -> str:
        return url_builder.url_for_access_token(code, self.credentials, options, settings=self.settings)

    def url_for_dialog(self, dialog_type: str, options: Mapping[str, Any] | None = None) -> str:
        return url_builder.url_for_dialog(dialog_type, self.credentials, options, settings=self.settings)

    # -- access tokens ---------------------------------------------------------

    def access_token_info(self, code: str, redirect_uri: str | None = None, **kwargs: Any) -> AccessTokenInfo:
        return self.token_client.exchange_code(code, redirect_uri, **kwargs)

    def access_token(self, code: str, redirect_uri: str | None = None, **kwargs: Any) -> str | None:
        return self.token_client.access_token(code, redirect_uri, **kwargs)

    def app_access_token_info(self, **kwargs: Any) -> AccessTokenInfo:
        return self.token_client.app_token(**kwargs)

    def app_access_token(self, **kwargs: Any) -> str | None:
        return self.token_client.app_access_token(**kwargs)

    # -- session keys ----------------------------------------------------------

    def session_key_info(
        self, sessions: Sequence[str], options: RequestOptions | None = None
    ) -> list[AccessTokenInfo | None]:
        return session_keys.session_key_info(sessions, self.token_client, options)

    def tokens_from_session_keys(
        self, sessions: Sequence[str], options: RequestOptions | None = None
    ) -> list[str | None]:
        return session_keys.exchange_session_keys(sessions, self.token_client, options)

    def token_from_session_key(self, session: str, options: RequestOptions | None = None) -> str | None:
        return session_keys.exchange_session_key(session, self.token_client, options)
