from __future__ import annotations

import logging
from collections.abc import Mapping

from graph_auth.core.errors import APIError
from graph_auth.models.credentials import AppCredentials
from graph_auth.models.session import SessionInfo
from graph_auth.services.legacy_cookie import parse_unsigned_cookie
from graph_auth.services.signed_request import parse_signed_request
from graph_auth.services.token_exchange import TokenExchangeClient

logger = logging.getLogger(__name__)

# Cookies set by the JavaScript SDK:
#   fbsr_<app_id>  signed request (HMAC-SHA256), carries an auth code
#   fbs_<app_id>   legacy MD5-signed cookie, carries the access token itself
SIGNED_COOKIE_PREFIX = "fbsr_"
LEGACY_COOKIE_PREFIX = "fbs_"


def signed_cookie_name(app_id: str) -> str:
    return f"{SIGNED_COOKIE_PREFIX}{app_id}"


def legacy_cookie_name(app_id: str) -> str:
    return f"{LEGACY_COOKIE_PREFIX}{app_id}"


def parse_signed_cookie(
    raw_cookie: str,
    credentials: AppCredentials,
    token_client: TokenExchangeClient,
) -> SessionInfo | None:
    """Verify the signed cookie, then trade its code for an access token.

    Verification errors propagate; a missing code or a token endpoint
    error means "no session".
    """
    envelope = parse_signed_request(raw_cookie, credentials.app_secret)
    if envelope.code is None:
        logger.info("Signed cookie has no code  app_id=%s", credentials.app_id)
        return None

    try:
        token_info = token_client.exchange_code(envelope.code, redirect_uri="")
    except APIError as e:
        logger.warning(
            "Code exchange for signed cookie failed  app_id=%s type=%s",
            credentials.app_id,
            e.type,
        )
        return None

    return SessionInfo({**envelope.fields, **token_info.as_fields()}, source="signed")


def resolve_session(
    cookies: Mapping[str, str],
    credentials: AppCredentials,
    token_client: TokenExchangeClient,
    *,
    now: int | None = None,
) -> SessionInfo | None:
    """Session from a request's cookie map, or None when there is none."""
    signed_cookie = cookies.get(signed_cookie_name(credentials.app_id))
    if signed_cookie is not None:
        return parse_signed_cookie(signed_cookie, credentials, token_client)

    legacy_cookie = cookies.get(legacy_cookie_name(credentials.app_id))
    if legacy_cookie is not None:
        return parse_unsigned_cookie(legacy_cookie, credentials.app_secret, now=now)

    return None


def user_from_cookies(
    cookies: Mapping[str, str],
    credentials: AppCredentials,
    token_client: TokenExchangeClient,
    *,
    now: int | None = None,
) -> str | None:
    session = resolve_session(cookies, credentials, token_client, now=now)
    return session.user_id if session is not None else None
