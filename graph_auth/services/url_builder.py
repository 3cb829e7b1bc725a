from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote_plus

from graph_auth.core.config import SETTINGS, Settings
from graph_auth.core.errors import ConfigError
from graph_auth.models.credentials import AppCredentials

# ---------------------------------------------------------------------------
# URLs the browser is sent to (or the server fetches) during the OAuth dance
#
#   authorize     https://<graph_server>/oauth/authorize
#   access_token  https://<graph_server>/oauth/access_token
#   dialog        http://<dialog_host>/dialog/<type>
#
# Caller options are never mutated; every builder works on a copy.
# ---------------------------------------------------------------------------


def encode_params(params: Mapping[str, Any]) -> str:
    """Stable query encoding: keys sorted, non-strings JSON-encoded, values form-escaped."""
    items = []
    for key in sorted(params, key=str):
        value = params[key]
        if not isinstance(value, str):
            value = json.dumps(value)
        items.append(f"{key}={quote_plus(value)}")
    # Only values are escaped; keys go out verbatim
    return "&".join(items)


def build_url(
    base: str,
    credentials: AppCredentials,
    options: Mapping[str, Any],
    *,
    require_redirect_uri: bool = False,
) -> str:
    url_options = dict(options)
    if require_redirect_uri:
        if url_options.get("redirect_uri") is None:
            callback = url_options.pop("callback", None)
            url_options["redirect_uri"] = (
                callback if callback is not None else credentials.callback_url
            )
        if url_options["redirect_uri"] is None:
            raise ConfigError(
                "a redirect_uri must be supplied either in the options or as the app's callback_url"
            )
    return f"{base}?{encode_params(url_options)}"


def url_for_oauth_code(
    credentials: AppCredentials,
    options: Mapping[str, Any] | None = None,
    *,
    settings: Settings = SETTINGS,
) -> str:
    """URL of the authorize endpoint.

    `permissions` may be a list (joined with commas) or a preformatted
    string; either way it is sent as `scope`.
    """
    url_options = dict(options or {})
    permissions = url_options.pop("permissions", None)
    if permissions is not None:
        if isinstance(permissions, (list, tuple)):
            permissions = ",".join(permissions)
        url_options["scope"] = permissions
    return build_url(
        f"https://{settings.graph_server}/oauth/authorize",
        credentials,
        {"client_id": credentials.app_id, **url_options},
        require_redirect_uri=True,
    )


def url_for_access_token(
    code: str,
    credentials: AppCredentials,
    options: Mapping[str, Any] | None = None,
    *,
    settings: Settings = SETTINGS,
) -> str:
    defaults = {
        "client_id": credentials.app_id,
        "code": code,
        "client_secret": credentials.secret_str,
    }
    return build_url(
        f"https://{settings.graph_server}/oauth/access_token",
        credentials,
        {**defaults, **(options or {})},
        require_redirect_uri=True,
    )


def url_for_dialog(
    dialog_type: str,
    credentials: AppCredentials,
    options: Mapping[str, Any] | None = None,
    *,
    settings: Settings = SETTINGS,
) -> str:
    # Some dialogs read app_id, others client_id; send both
    defaults = {"app_id": credentials.app_id, "client_id": credentials.app_id}
    return build_url(
        f"http://{settings.dialog_host}/dialog/{dialog_type}",
        credentials,
        {**defaults, **(options or {})},
        require_redirect_uri=True,
    )
