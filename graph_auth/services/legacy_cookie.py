from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from collections.abc import Mapping

from graph_auth.core.metrics import LEGACY_COOKIE_CHECKS
from graph_auth.models.session import SessionInfo

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")

# Legacy `fbs_<app_id>` cookie:
#
#   "access_token=...&expires=1300000000&secret=...&session_key=...&sig=...&uid=..."
#
# sig = md5_hex(canonical_string(components) + app_secret)
#
# expires == "0" means the session never expires (offline_access).


def split_cookie(raw_cookie: str) -> dict[str, str]:
    """Split a raw legacy cookie value into its key/value components.

    Only the first two `=`-separated segments of a pair are kept, so a
    value that itself contains `=` is truncated.  Signers compute the sig
    over the truncated value as well.
    """
    components: dict[str, str] = {}
    for pair in raw_cookie.replace('"', "").split("&"):
        if not pair:
            continue
        parts = pair.split("=")
        components[parts[0]] = parts[1] if len(parts) > 1 else ""
    return components


def canonical_string(components: Mapping[str, str]) -> str:
    """Sorted `key=value` pairs, excluding sig, joined with no separator."""
    return "".join(f"{key}={components[key]}" for key in sorted(components) if key != "sig")


def compute_signature(components: Mapping[str, str], secret: str | bytes) -> str:
    secret_bytes = secret if isinstance(secret, bytes) else secret.encode("utf-8")
    return hashlib.md5(canonical_string(components).encode("utf-8") + secret_bytes).hexdigest()


def _to_int(value: str | None) -> int:
    # Leading-integer parse: "123abc" -> 123, "abc" or None -> 0
    if value is None:
        return 0
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def parse_unsigned_cookie(
    raw_cookie: str,
    secret: str | bytes,
    *,
    now: int | None = None,
) -> SessionInfo | None:
    """Validate a legacy cookie.  Returns None for a bad or expired one."""
    components = split_cookie(raw_cookie)

    expected_sig = compute_signature(components, secret)
    given_sig = components.get("sig", "").encode("utf-8")
    if not hmac.compare_digest(expected_sig.encode("ascii"), given_sig):
        LEGACY_COOKIE_CHECKS.labels(result="bad_signature").inc()
        logger.info("Legacy cookie rejected: signature mismatch")
        return None

    expires = components.get("expires")
    current = int(time.time()) if now is None else now
    if expires != "0" and not current < _to_int(expires):
        LEGACY_COOKIE_CHECKS.labels(result="expired").inc()
        logger.info("Legacy cookie rejected: expired at %s", expires)
        return None

    LEGACY_COOKIE_CHECKS.labels(result="ok").inc()
    return SessionInfo(components, source="legacy")
