from __future__ import annotations

import pytest

from graph_auth.core.errors import APIError
from graph_auth.models.credentials import AppCredentials
from graph_auth.services.http import RequestOptions
from graph_auth.services.token_exchange import (
    TokenExchangeClient,
    error_details,
    parse_access_token,
)
from tests.conftest import APP_ID, APP_SECRET, CALLBACK_URL, FakeHttpService

OAUTH_ERROR = '{"error": {"type": "OAuthException", "message": "Code was invalid or expired."}}'


# ---- response parsing ----


def test_parse_access_token_form_body() -> None:
    info = parse_access_token("access_token=AAA|bbb&expires=5183999")
    assert info.access_token == "AAA|bbb"
    assert info.expires == "5183999"
    assert info.token_type is None


def test_parse_access_token_last_duplicate_wins() -> None:
    assert parse_access_token("access_token=first&access_token=second").access_token == "second"


def test_parse_access_token_splits_on_first_equals_only() -> None:
    assert parse_access_token("access_token=abc==").access_token == "abc=="


def test_parse_access_token_keeps_extra_fields() -> None:
    info = parse_access_token("access_token=AAA&machine_id=m1")
    assert info.as_fields() == {"access_token": "AAA", "machine_id": "m1"}


def test_as_fields_omits_keys_not_sent() -> None:
    assert parse_access_token("access_token=AAA").as_fields() == {"access_token": "AAA"}


def test_parse_access_token_empty_body() -> None:
    assert parse_access_token("").as_fields() == {}


def test_parse_access_token_skips_empty_segments() -> None:
    assert parse_access_token("access_token=A&").as_fields() == {"access_token": "A"}
    assert parse_access_token("&access_token=A&&expires=5").as_fields() == {
        "access_token": "A",
        "expires": "5",
    }


def test_error_details_extracts_nested_object() -> None:
    assert error_details(OAUTH_ERROR) == {
        "type": "OAuthException",
        "message": "Code was invalid or expired.",
    }


def test_error_details_from_string_error() -> None:
    body = '{"error": "invalid_grant", "error_description": "Code was already redeemed."}'
    assert error_details(body) == {
        "type": "invalid_grant",
        "message": "Code was already redeemed.",
    }
    assert error_details('{"error": "invalid_client"}') == {"type": "invalid_client"}


def test_string_error_body_raises_typed_api_error(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue('{"error": "invalid_grant", "error_description": "bad code"}')
    with pytest.raises(APIError) as exc_info:
        token_client.exchange_code("CODE")
    assert exc_info.value.type == "invalid_grant"
    assert exc_info.value.message == "bad code"


@pytest.mark.parametrize(
    "body",
    ["this is an error, not json", '{"error": 42}', '["error"]', '{"no": "error key"}'],
)
def test_error_details_falls_back_to_empty(body: str) -> None:
    assert error_details(body) == {}


# ---- exchange_code ----


def test_exchange_code_sends_expected_request(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=AAA&expires=3600")

    info = token_client.exchange_code("the-code")

    assert info.access_token == "AAA"
    call = fake_http.last_call
    assert call.path == "/oauth/access_token"
    assert call.method == "get"
    assert call.options.use_ssl is True
    assert call.params == {
        "client_id": APP_ID,
        "client_secret": APP_SECRET,
        "code": "the-code",
        "redirect_uri": CALLBACK_URL,
    }


def test_exchange_code_keeps_explicit_empty_redirect_uri(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=AAA")
    token_client.exchange_code("c", redirect_uri="")
    assert fake_http.last_call.params["redirect_uri"] == ""


def test_exchange_code_caller_params_win(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=AAA")
    token_client.exchange_code("c", params={"redirect_uri": "https://other/cb", "extra": "1"})
    assert fake_http.last_call.params["redirect_uri"] == "https://other/cb"
    assert fake_http.last_call.params["extra"] == "1"


def test_exchange_code_method_override(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=AAA")
    token_client.exchange_code("c", options=RequestOptions(method="post", use_ssl=False))
    assert fake_http.last_call.method == "post"
    assert fake_http.last_call.options.use_ssl is False


def test_exchange_code_raises_api_error_with_details(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue(OAUTH_ERROR)
    with pytest.raises(APIError) as exc_info:
        token_client.exchange_code("bad-code")
    assert exc_info.value.type == "OAuthException"
    assert exc_info.value.message == "Code was invalid or expired."
    assert exc_info.value.details["type"] == "OAuthException"


def test_undecodable_error_body_gives_empty_details(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("<html>internal error</html>")
    with pytest.raises(APIError) as exc_info:
        token_client.exchange_code("c")
    assert exc_info.value.details == {}
    assert exc_info.value.type is None


def test_access_token_returns_string(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=AAA&expires=1")
    assert token_client.access_token("c") == "AAA"


def test_no_callback_url_sends_none(fake_http: FakeHttpService) -> None:
    client = TokenExchangeClient(AppCredentials(APP_ID, APP_SECRET), fake_http)
    fake_http.queue("access_token=AAA")
    client.exchange_code("c")
    assert fake_http.last_call.params["redirect_uri"] is None


# ---- client credentials ----


def test_app_token_uses_client_cred_grant_over_post(
    token_client: TokenExchangeClient, fake_http: FakeHttpService
) -> None:
    fake_http.queue("access_token=APP|TOKEN")

    assert token_client.app_access_token() == "APP|TOKEN"

    call = fake_http.last_call
    assert call.path == "/oauth/access_token"
    assert call.method == "post"
    assert call.params == {
        "client_id": APP_ID,
        "client_secret": APP_SECRET,
        "type": "client_cred",
    }


def test_app_token_error(token_client: TokenExchangeClient, fake_http: FakeHttpService) -> None:
    fake_http.queue(OAUTH_ERROR)
    with pytest.raises(APIError):
        token_client.app_token()


def test_transport_errors_propagate(credentials: AppCredentials) -> None:
    class BrokenHttp:
        def perform(self, path, params, method, options):  # type: ignore[no-untyped-def]
            raise ConnectionError("boom")

    client = TokenExchangeClient(credentials, BrokenHttp())
    with pytest.raises(ConnectionError, match="boom"):
        client.exchange_code("c")
