import asyncio
import json

import httpx


class FakeBackend:
    """In-process stand-in for the API server.

    Requests carrying ``Bearer <valid_token>`` succeed, anything else gets a
    401. The refresh endpoint can be held open with ``hold_refresh`` so tests
    control exactly when it settles.
    """

    def __init__(self, *, valid_token: str = "T2", refresh_token: str = "T2") -> None:
        self.valid_token = valid_token
        self.refresh_token = refresh_token
        self.refresh_status = 200
        self.refresh_payload: dict | None = None
        self.refresh_gate: asyncio.Event | None = None
        self.refresh_error: Exception | None = None
        self.requests: list[httpx.Request] = []
        self.refresh_calls = 0
        self.overrides: dict[str, tuple[int, object]] = {}

    def hold_refresh(self) -> asyncio.Event:
        self.refresh_gate = asyncio.Event()
        return self.refresh_gate

    def sent(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/auth/refresh":
            self.refresh_calls += 1
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            if self.refresh_error is not None:
                raise self.refresh_error
            payload = self.refresh_payload
            if payload is None:
                payload = {"code": 1000, "msg": "success", "data": {"accessToken": self.refresh_token}}
            return httpx.Response(self.refresh_status, json=payload)

        if path in self.overrides:
            status, payload = self.overrides[path]
            return httpx.Response(status, json=payload)

        if request.headers.get("authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"code": 401, "msg": "unauthorized"})

        body = json.loads(request.content) if request.content else None
        return httpx.Response(
            200,
            json={"code": 1000, "msg": "success", "data": {"path": path, "body": body}},
        )


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __call__(self, *args) -> None:
        self.calls.append(args)


async def wait_until(predicate, *, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(_poll(), timeout)
