"""HTTP transport used to reach the Graph API token endpoints.

Everything above this module talks to an HttpService, never to httpx
directly, so the token client can be exercised with an in-memory fake and
an application can swap in its own transport (a shared client, a proxy,
a test double).

Non-2xx responses are returned, not raised: the token endpoint reports
OAuth errors in the body and the token client interprets them.
Transport failures (httpx.HTTPError) propagate to the caller unchanged.
There is no retry here.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Literal, Protocol

import httpx

from graph_auth.core.config import SETTINGS, Settings

logger = logging.getLogger(__name__)

HttpMethod = Literal["get", "post"]


@dataclass(frozen=True, slots=True)
class RequestOptions:
    use_ssl: bool = True
    timeout: float | None = None
    # Overrides the default method chosen by the caller when set
    method: HttpMethod | None = None
    follow_redirects: bool = False


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)


class HttpService(Protocol):
    def perform(
        self,
        path: str,
        params: Mapping[str, Any],
        method: HttpMethod,
        options: RequestOptions,
    ) -> HttpResponse: ...


class HttpxService:
    """HttpService backed by an httpx.Client.

    Pass `client` to share a connection pool with the rest of the app;
    otherwise one is created lazily and closed by close()/__exit__.
    """

    def __init__(
        self,
        settings: Settings = SETTINGS,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._settings.http_timeout)
        return self._client

    def url_for(self, path: str, options: RequestOptions) -> str:
        scheme = "https" if options.use_ssl else "http"
        return f"{scheme}://{self._settings.graph_server}{path}"

    def perform(
        self,
        path: str,
        params: Mapping[str, Any],
        method: HttpMethod,
        options: RequestOptions,
    ) -> HttpResponse:
        url = self.url_for(path, options)
        timeout = options.timeout if options.timeout is not None else self._settings.http_timeout
        client = self._get_client()

        if method == "post":
            response = client.post(
                url,
                data=dict(params),
                timeout=timeout,
                follow_redirects=options.follow_redirects,
            )
        else:
            response = client.get(
                url,
                params=dict(params),
                timeout=timeout,
                follow_redirects=options.follow_redirects,
            )

        logger.debug(
            "HTTP %s %s -> %d",
            method.upper(),
            path,
            response.status_code,
            extra={"method": method, "status_code": response.status_code},
        )
        return HttpResponse(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> HttpxService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
