"""Prometheus metrics for graph-auth.

All metrics live here so there is one inventory of what the library
measures.  Modules import a metric and increment/observe it at the point
of action.  The host application exposes them through its own /metrics
endpoint (prometheus_client.generate_latest()).

Label values are a small fixed set; never put user ids or tokens in them.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

SIGNED_REQUEST_VERIFICATIONS = Counter(
    "signed_request_verifications_total",
    "Signed envelope verifications by result",
    # "ok", "format_error", "unsupported_algorithm", "signature_mismatch"
    ["result"],
)

LEGACY_COOKIE_CHECKS = Counter(
    "legacy_cookie_checks_total",
    "Legacy (MD5-signed) cookie checks by result",
    ["result"],  # "ok", "bad_signature", "expired"
)

TOKEN_EXCHANGES = Counter(
    "token_exchanges_total",
    "Calls to the OAuth token endpoints by outcome",
    # endpoint: "access_token" or "exchange_sessions"
    # outcome: "ok", "api_error", "empty_body"
    ["endpoint", "outcome"],
)

TOKEN_EXCHANGE_DURATION = Histogram(
    "token_exchange_duration_seconds",
    "Round-trip time of calls to the OAuth token endpoints",
    ["endpoint"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
