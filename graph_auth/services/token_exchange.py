"""Token endpoint client: authorization code and client-credential grants.

The access_token endpoint answers in one of two shapes:

  success:  access_token=AAA...&expires=5183999          (form-encoded)
  failure:  {"error": {"type": "OAuthException", "message": "..."}}

Anything containing the substring "error" is treated as the failure shape.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

from graph_auth.core.errors import APIError
from graph_auth.core.metrics import TOKEN_EXCHANGE_DURATION, TOKEN_EXCHANGES
from graph_auth.models.credentials import AppCredentials
from graph_auth.models.token import AccessTokenInfo
from graph_auth.services.http import HttpMethod, HttpService, RequestOptions

logger = logging.getLogger(__name__)

ACCESS_TOKEN_ENDPOINT = "access_token"


def parse_access_token(response_text: str) -> AccessTokenInfo:
    """Parse `k=v&k=v` into an AccessTokenInfo.  The last duplicate key wins."""
    components: dict[str, str | None] = {}
    for bit in response_text.split("&"):
        if not bit:
            continue
        key, sep, value = bit.partition("=")
        components[key] = value if sep else None
    return AccessTokenInfo.model_validate(components)


def error_details(response_text: str) -> dict[str, Any]:
    """Extract the `error` object from a JSON error body.

    A bare string error (`{"error": "invalid_grant", "error_description":
    ...}`) becomes {"type": ..., "message": ...}.  An undecodable body
    yields {} rather than raising; callers still raise APIError, just
    without details.
    """
    try:
        body = json.loads(response_text)
        details = body["error"]
    except (ValueError, KeyError, TypeError):
        logger.debug("Token endpoint error body is not decodable JSON")
        return {}
    if isinstance(details, dict):
        return details
    if isinstance(details, str):
        message = body.get("error_description")
        return {"type": details, "message": message} if message else {"type": details}
    return {}


class TokenExchangeClient:
    def __init__(self, credentials: AppCredentials, http: HttpService) -> None:
        self._credentials = credentials
        self._http = http

    @property
    def credentials(self) -> AppCredentials:
        return self._credentials

    def fetch_token_string(
        self,
        args: Mapping[str, Any],
        *,
        post: bool = False,
        endpoint: str = ACCESS_TOKEN_ENDPOINT,
        options: RequestOptions | None = None,
    ) -> str:
        """Call /oauth/<endpoint> and return the raw response body."""
        options = options or RequestOptions()
        params = {
            "client_id": self._credentials.app_id,
            "client_secret": self._credentials.secret_str,
            **args,
        }
        method: HttpMethod = options.method or ("post" if post else "get")

        started = time.perf_counter()
        response = self._http.perform(f"/oauth/{endpoint}", params, method, options)
        duration = time.perf_counter() - started
        TOKEN_EXCHANGE_DURATION.labels(endpoint=endpoint).observe(duration)

        logger.info(
            "Token endpoint call  app_id=%s endpoint=%s status=%d",
            self._credentials.app_id,
            endpoint,
            response.status_code,
            extra={
                "app_id": self._credentials.app_id,
                "endpoint": endpoint,
                "method": method,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 1),
            },
        )
        return response.body

    def token_from_server(
        self,
        args: Mapping[str, Any],
        *,
        post: bool = False,
        options: RequestOptions | None = None,
    ) -> AccessTokenInfo:
        result = self.fetch_token_string(args, post=post, options=options)

        if "error" in result:
            TOKEN_EXCHANGES.labels(endpoint=ACCESS_TOKEN_ENDPOINT, outcome="api_error").inc()
            error = APIError(error_details(result))
            logger.warning(
                "Token endpoint returned an error  app_id=%s type=%s",
                self._credentials.app_id,
                error.type,
            )
            raise error

        TOKEN_EXCHANGES.labels(endpoint=ACCESS_TOKEN_ENDPOINT, outcome="ok").inc()
        return parse_access_token(result)

    # -- authorization code --------------------------------------------------

    def exchange_code(
        self,
        code: str,
        redirect_uri: str | None = None,
        *,
        params: Mapping[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> AccessTokenInfo:
        """Exchange an authorization code for an access token (GET by default).

        redirect_uri falls back to the app's callback URL only when None;
        an explicit "" is sent as-is (the signed-cookie flow relies on it).
        """
        if redirect_uri is None:
            redirect_uri = self._credentials.callback_url
        args = {"code": code, "redirect_uri": redirect_uri, **(params or {})}
        return self.token_from_server(args, post=False, options=options)

    def access_token(self, code: str, redirect_uri: str | None = None, **kwargs: Any) -> str | None:
        return self.exchange_code(code, redirect_uri, **kwargs).access_token

    # -- client credentials --------------------------------------------------

    def app_token(
        self,
        *,
        params: Mapping[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> AccessTokenInfo:
        """The application's own (sessionless) access token."""
        args = {"type": "client_cred", **(params or {})}
        return self.token_from_server(args, post=True, options=options)

    def app_access_token(self, **kwargs: Any) -> str | None:
        return self.app_token(**kwargs).access_token
