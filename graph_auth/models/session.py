from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

SessionSource = Literal["signed", "legacy"]


def _freeze(fields: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(fields))


@dataclass(frozen=True, slots=True)
class SignedEnvelope:
    """Decoded payload of a verified `signature.payload` token.

    Only built by parse_signed_request() after the HMAC check passes.
    """

    fields: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))

    @property
    def algorithm(self) -> str:
        return self.fields["algorithm"]

    @property
    def code(self) -> str | None:
        return self.fields.get("code")

    @property
    def user_id(self) -> str | None:
        value = self.fields.get("user_id")
        return None if value is None else str(value)

    @property
    def issued_at(self) -> int | None:
        return self.fields.get("issued_at")

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields)


@dataclass(frozen=True, slots=True)
class SessionInfo:
    """An authenticated session, from either cookie format.

    The signed path carries `user_id`; the legacy path carries `uid`.
    `user_id` below resolves both with a single precedence rule.
    """

    fields: Mapping[str, Any]
    source: SessionSource

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))

    @property
    def user_id(self) -> str | None:
        for key in ("user_id", "uid"):
            value = self.fields.get(key)
            if value is not None:
                return str(value)
        return None

    @property
    def access_token(self) -> str | None:
        return self.fields.get("access_token")

    @property
    def expires(self) -> str | None:
        value = self.fields.get("expires")
        return None if value is None else str(value)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields)
