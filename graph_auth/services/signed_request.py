"""Signed request verification (the `fbsr_<app_id>` cookie).

Wire format:

    base64url(hmac_sha256(secret, encoded_payload)) + "." + encoded_payload

where encoded_payload = base64url(json_object).  The JSON object must carry
"algorithm": "HMAC-SHA256".

Note the HMAC is computed over the ENCODED payload string as it appears on
the wire, not over the decoded JSON bytes.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any

from graph_auth.core.errors import (
    FormatError,
    SignatureMismatchError,
    UnsupportedAlgorithmError,
)
from graph_auth.core.metrics import SIGNED_REQUEST_VERIFICATIONS
from graph_auth.models.session import SignedEnvelope

logger = logging.getLogger(__name__)

ALGORITHM = "HMAC-SHA256"


def _as_bytes(secret: str | bytes) -> bytes:
    return secret if isinstance(secret, bytes) else secret.encode("utf-8")


def pad_base64url(data: str) -> str:
    # Always appends 4 - len % 4 "=", so an already aligned string gets
    # a full "====".  Kept for compatibility with existing signers.
    return data + "=" * (4 - len(data) % 4)


def base64_url_decode(data: str) -> bytes:
    # The non-strict decoder ignores the surplus padding from pad_base64url
    try:
        return base64.urlsafe_b64decode(pad_base64url(data))
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"SignedRequest: Invalid base64url data ({e})") from None


def base64_url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def parse_signed_request(token: str, secret: str | bytes) -> SignedEnvelope:
    """Verify `token` and return its decoded envelope.

    Raises FormatError, UnsupportedAlgorithmError or SignatureMismatchError.
    """
    encoded_sig, sep, encoded_envelope = token.partition(".")
    if not sep or not encoded_sig or not encoded_envelope:
        SIGNED_REQUEST_VERIFICATIONS.labels(result="format_error").inc()
        raise FormatError("SignedRequest: Invalid (incomplete) signature data")

    try:
        signature = base64_url_decode(encoded_sig).hex()
        raw_envelope = base64_url_decode(encoded_envelope)
        try:
            envelope = json.loads(raw_envelope)
        except (UnicodeDecodeError, ValueError):
            raise FormatError("SignedRequest: Payload is not valid JSON") from None
        if not isinstance(envelope, dict):
            raise FormatError("SignedRequest: Payload is not a JSON object")
    except FormatError:
        SIGNED_REQUEST_VERIFICATIONS.labels(result="format_error").inc()
        raise

    algorithm = envelope.get("algorithm")
    if algorithm != ALGORITHM:
        SIGNED_REQUEST_VERIFICATIONS.labels(result="unsupported_algorithm").inc()
        logger.warning("Signed request rejected: unsupported algorithm %r", algorithm)
        raise UnsupportedAlgorithmError(algorithm)

    expected = hmac.new(
        _as_bytes(secret), encoded_envelope.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    if not hmac.compare_digest(signature, expected):
        SIGNED_REQUEST_VERIFICATIONS.labels(result="signature_mismatch").inc()
        logger.warning("Signed request rejected: invalid signature")
        raise SignatureMismatchError("SignedRequest: Invalid signature")

    SIGNED_REQUEST_VERIFICATIONS.labels(result="ok").inc()
    return SignedEnvelope(envelope)


def sign_envelope(payload: Mapping[str, Any], secret: str | bytes) -> str:
    """Build a signed request token for `payload`.

    Sets "algorithm" to HMAC-SHA256 unless the payload already names one.
    """
    body = {"algorithm": ALGORITHM, **payload}
    encoded_envelope = base64_url_encode(
        json.dumps(body, separators=(",", ":")).encode("utf-8")
    )
    sig = hmac.new(
        _as_bytes(secret), encoded_envelope.encode("utf-8"), hashlib.sha256
    ).digest()
    return f"{base64_url_encode(sig)}.{encoded_envelope}"
