from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from graph_auth.core.errors import APIError, EmptyResponseError
from graph_auth.core.metrics import TOKEN_EXCHANGES
from graph_auth.models.token import AccessTokenInfo
from graph_auth.services.http import RequestOptions
from graph_auth.services.token_exchange import TokenExchangeClient

logger = logging.getLogger(__name__)

EXCHANGE_SESSIONS_ENDPOINT = "exchange_sessions"

# Converts deprecated session keys into OAuth access tokens.
# The endpoint answers with a JSON array aligned with the requested keys;
# a key it could not convert gets null (or an object without access_token).


def _slot_info(result: object) -> AccessTokenInfo | None:
    # A slot that is not an object, or carries an unusable access_token,
    # counts as a key that was not converted
    if not isinstance(result, dict):
        return None
    try:
        return AccessTokenInfo.model_validate(result)
    except ValidationError:
        logger.debug("Unusable exchange_sessions slot ignored")
        return None


def session_key_info(
    sessions: Sequence[str],
    token_client: TokenExchangeClient,
    options: RequestOptions | None = None,
) -> list[AccessTokenInfo | None]:
    sessions = list(sessions)
    body = token_client.fetch_token_string(
        {"type": "client_cred", "sessions": ",".join(sessions)},
        post=True,
        endpoint=EXCHANGE_SESSIONS_ENDPOINT,
        options=options,
    )

    # The endpoint returns an empty body in certain error conditions
    if body == "":
        TOKEN_EXCHANGES.labels(endpoint=EXCHANGE_SESSIONS_ENDPOINT, outcome="empty_body").inc()
        logger.warning(
            "Session exchange returned an empty body  session_count=%d",
            len(sessions),
            extra={
                "app_id": token_client.credentials.app_id,
                "endpoint": EXCHANGE_SESSIONS_ENDPOINT,
            },
        )
        raise EmptyResponseError(sessions)

    try:
        results = json.loads(body)
    except ValueError:
        TOKEN_EXCHANGES.labels(endpoint=EXCHANGE_SESSIONS_ENDPOINT, outcome="api_error").inc()
        raise APIError(
            {"type": "ParseError", "message": "exchange_sessions response is not valid JSON"}
        ) from None

    if isinstance(results, dict) and "error" in results:
        TOKEN_EXCHANGES.labels(endpoint=EXCHANGE_SESSIONS_ENDPOINT, outcome="api_error").inc()
        details = results["error"]
        raise APIError(details if isinstance(details, dict) else {})

    if not isinstance(results, list):
        TOKEN_EXCHANGES.labels(endpoint=EXCHANGE_SESSIONS_ENDPOINT, outcome="api_error").inc()
        raise APIError(
            {"type": "ParseError", "message": "exchange_sessions response is not a JSON array"}
        )

    TOKEN_EXCHANGES.labels(endpoint=EXCHANGE_SESSIONS_ENDPOINT, outcome="ok").inc()
    return [_slot_info(r) for r in results]


def exchange_session_keys(
    sessions: Sequence[str],
    token_client: TokenExchangeClient,
    options: RequestOptions | None = None,
) -> list[str | None]:
    """Access token per session key, None where the key was not converted."""
    return [
        info.access_token if info is not None else None
        for info in session_key_info(sessions, token_client, options)
    ]


def exchange_session_key(
    session: str,
    token_client: TokenExchangeClient,
    options: RequestOptions | None = None,
) -> str | None:
    tokens = exchange_session_keys([session], token_client, options)
    return tokens[0] if tokens else None
