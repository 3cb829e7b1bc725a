"""Exception taxonomy for graph-auth.

Two families of failure matter to callers and must never be confused:

  - LOCAL failures: the input we were handed is malformed, signed with an
    algorithm we don't accept, or signed with the wrong key.  These are
    raised as SignedRequestError subclasses (and ConfigError for a missing
    redirect URI).  They are ValueErrors too, so generic input-validation
    handlers catch them.

  - REMOTE failures: the token endpoint told us something went wrong.
    These are APIError, carrying whatever error object the server sent.

"No session" is NOT an error.  Resolvers return None for it.
Transport failures (httpx.HTTPError) are not wrapped here; they reach the
caller unchanged.
"""

from __future__ import annotations

from typing import Any


class GraphAuthError(Exception):
    """Base class for every error raised by graph-auth."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Signed request (fbsr_ cookie) verification
# ---------------------------------------------------------------------------


class SignedRequestError(GraphAuthError, ValueError):
    """A signed envelope token could not be trusted."""


class FormatError(SignedRequestError):
    """Token is not `signature.payload`, or a part does not decode."""


class UnsupportedAlgorithmError(SignedRequestError):
    def __init__(self, algorithm: Any) -> None:
        self.algorithm = algorithm
        super().__init__(f"SignedRequest: Unsupported algorithm {algorithm!r}")


class SignatureMismatchError(SignedRequestError):
    """HMAC over the payload does not match the signature part."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(GraphAuthError, ValueError):
    """Required configuration (e.g. a redirect URI) is missing."""


# ---------------------------------------------------------------------------
# Remote errors
# ---------------------------------------------------------------------------


class APIError(GraphAuthError):
    """The token endpoint reported an error.

    `details` is the server's error object (e.g. {"type": "OAuthException",
    "message": "..."}), or {} when the error body could not be decoded.
    """

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        self.details: dict[str, Any] = dict(details or {})
        self.type: str | None = self.details.get("type")
        message = self.details.get("message") or "token endpoint returned an error"
        super().__init__(str(message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.type!r}, message={self.message!r})"


class EmptyResponseError(APIError):
    """The session exchange endpoint answered with an empty body."""

    def __init__(self, sessions: list[str]) -> None:
        self.sessions = list(sessions)
        super().__init__(
            {
                "type": "ArgumentError",
                "message": (
                    "get_token_from_session_key received an error "
                    f"(empty response body) for sessions {self.sessions!r}!"
                ),
            }
        )
