from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class AccessTokenInfo(BaseModel):
    """Fields returned by the access_token endpoint.

    The endpoint answers `access_token=...&expires=...`; anything else it
    sends is kept as an extra field.
    """

    # exchange_sessions answers in JSON, where expires is a number
    model_config = ConfigDict(extra="allow", frozen=True, coerce_numbers_to_str=True)

    access_token: str | None = None
    expires: str | None = None
    token_type: str | None = None

    def as_fields(self) -> dict[str, Any]:
        """Only the keys the server actually sent, extras included."""
        return self.model_dump(exclude_unset=True)
