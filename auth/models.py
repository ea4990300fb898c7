from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from webtrace_client.constants import SUCCESS_CODES
from webtrace_client.errors import RefreshFailure, UnauthorizedError


class RefreshState(enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class RequestContext:
    """Per-request retry marker: attempt 1 means already replayed after a refresh."""

    attempt: Literal[0, 1] = 0

    @property
    def retried(self) -> bool:
        return self.attempt >= 1

    def next_attempt(self) -> "RequestContext":
        return replace(self, attempt=1)


@dataclass(frozen=True)
class ApiRequest:
    method: str
    url: str
    params: dict[str, Any] | None = None
    json: Any = None
    content: bytes | str | None = None
    data: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None


@dataclass
class PendingRequest:
    request: ApiRequest
    context: RequestContext
    error: UnauthorizedError
    future: asyncio.Future


@dataclass
class ApiEnvelope:
    code: int | None
    data: Any = None
    msg: str | None = None

    @property
    def ok(self) -> bool:
        return self.code in SUCCESS_CODES

    @classmethod
    def from_payload(cls, payload: Any, status_code: int) -> "ApiEnvelope":
        if not isinstance(payload, dict) or "code" not in payload:
            return cls(code=status_code, data=payload)
        code = payload.get("code")
        msg = payload.get("msg", payload.get("message"))
        return cls(
            code=code if isinstance(code, int) else None,
            data=payload.get("data"),
            msg=msg if isinstance(msg, str) else None,
        )


@dataclass
class RefreshResponse:
    access_token: str

    @classmethod
    def from_payload(cls, payload: Any) -> "RefreshResponse":
        if not isinstance(payload, dict):
            raise RefreshFailure("Refresh response is not a JSON object.")
        code = payload.get("code")
        if code not in SUCCESS_CODES:
            raise RefreshFailure(f"Refresh rejected with code {code}: {payload.get('msg')}")
        data = payload.get("data")
        access_token = data.get("accessToken") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise RefreshFailure("Refresh response missing accessToken.")
        return cls(access_token=access_token)
