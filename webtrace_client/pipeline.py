from __future__ import annotations

import httpx

from auth.identity import IdentityStore
from auth.models import ApiEnvelope, ApiRequest, RefreshResponse, RequestContext
from auth.refresh import RefreshCoordinator
from auth.session_recovery import (
    Notifier,
    SessionRecoveryHook,
    call_maybe_async,
    log_notifier,
)
from auth.storage import KeyValueStorage

from .constants import (
    DEVICES_ENDPOINT,
    KICK_ENDPOINT,
    LOGGER,
    LOGIN_ENDPOINT,
    LOGOUT_ENDPOINT,
    REFRESH_ENDPOINT,
)
from .errors import (
    Outcome,
    PipelineError,
    RefreshFailure,
    SendFailure,
    UnauthorizedError,
    error_for,
)
from .http import classify_response, classify_transport_error


class ApiClient:
    """Authenticated API client.

    Every call goes through the request hook on ``http_client`` (identity and
    credential headers), is classified on return, and 401s are recovered by
    the refresh coordinator. Callers receive the server's ``{code, data, msg}``
    envelope and check ``code`` themselves.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        identity: IdentityStore,
        session_storage: KeyValueStorage,
        recovery: SessionRecoveryHook,
        notifier: Notifier = log_notifier,
        refresh_path: str = REFRESH_ENDPOINT,
        refresh_timeout: float = 10.0,
    ) -> None:
        self.http_client = http_client
        self.identity = identity
        self.session_storage = session_storage
        self.recovery = recovery
        self._notifier = notifier
        self._refresh_path = refresh_path
        self._refresh_timeout = refresh_timeout
        self.coordinator = RefreshCoordinator(
            identity=identity,
            refresh_call=self.refresh_credential,
            recovery=recovery,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def request(self, method: str, url: str, **kwargs) -> ApiEnvelope:
        request = ApiRequest(method=method.upper(), url=url, **kwargs)
        return await self._send(request, RequestContext())

    async def get(self, url: str, **kwargs) -> ApiEnvelope:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> ApiEnvelope:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> ApiEnvelope:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> ApiEnvelope:
        return await self.request("DELETE", url, **kwargs)

    async def _send(self, request: ApiRequest, context: RequestContext) -> ApiEnvelope:
        response = await self._transmit(request)
        outcome, message = classify_response(response)

        if outcome is Outcome.SUCCESS:
            return ApiEnvelope.from_payload(_json_or_text(response), response.status_code)

        error = error_for(outcome, message, response=response)
        if isinstance(error, UnauthorizedError):
            return await self.coordinator.recover(request, context, error, self._send)

        await self._surface(error)
        raise error

    async def _transmit(self, request: ApiRequest) -> httpx.Response:
        try:
            http_request = self.http_client.build_request(
                request.method,
                request.url,
                params=request.params,
                json=request.json,
                content=request.content,
                data=request.data,
                headers=request.headers,
                timeout=_timeout_arg(request.timeout),
            )
        except (TypeError, ValueError, httpx.InvalidURL) as error:
            failure = SendFailure(f"Failed to build request: {error}")
            await self._surface(failure)
            raise failure from error

        try:
            return await self.http_client.send(http_request)
        except SendFailure as failure:
            await self._surface(failure)
            raise
        except httpx.RequestError as transport_error:
            outcome, message = classify_transport_error(transport_error)
            error = error_for(outcome, message)
            await self._surface(error)
            raise error from transport_error

    async def _surface(self, error: PipelineError) -> None:
        LOGGER.warning(
            "API call failed outcome=%s status=%s: %s",
            error.outcome.value,
            error.status_code,
            error.message,
        )
        try:
            await call_maybe_async(self._notifier, "error", error.message)
        except Exception:
            LOGGER.exception("Error notifier failed")

    async def refresh_credential(self) -> str:
        """Exchange the cookie-held session reference for a new bearer token.

        Sent straight to the transport, bypassing classification and the
        coordinator; every failure surfaces as ``RefreshFailure``.
        """
        try:
            response = await self.http_client.post(
                self._refresh_path,
                timeout=self._refresh_timeout,
            )
        except httpx.RequestError as transport_error:
            _, message = classify_transport_error(transport_error)
            raise RefreshFailure(f"Refresh call failed: {message}") from transport_error
        except SendFailure as failure:
            raise RefreshFailure(f"Refresh call failed: {failure.message}") from failure

        if response.status_code >= 400:
            raise RefreshFailure(
                f"Refresh call failed with status {response.status_code}.",
                response=response,
            )
        try:
            payload = response.json()
        except ValueError as error:
            raise RefreshFailure("Refresh response is not valid JSON.", response=response) from error
        return RefreshResponse.from_payload(payload).access_token

    async def login(self, username: str, password: str) -> ApiEnvelope:
        envelope = await self.post(LOGIN_ENDPOINT, json={"username": username, "password": password})
        token = envelope.data.get("accessToken") if isinstance(envelope.data, dict) else None
        if envelope.ok and isinstance(token, str) and token:
            await self.identity.set_credential(token)
            self.recovery.reset()
            LOGGER.info("Signed in as %s", username)
        return envelope

    async def logout(self) -> ApiEnvelope | None:
        try:
            return await self.post(LOGOUT_ENDPOINT)
        except PipelineError as error:
            LOGGER.warning("Logout call failed, clearing local credential anyway: %s", error)
            return None
        finally:
            await self.identity.clear_credential()

    async def list_devices(self) -> ApiEnvelope:
        return await self.get(DEVICES_ENDPOINT)

    async def kick_device(self, token_id: int) -> ApiEnvelope:
        return await self.post(KICK_ENDPOINT, json={"tokenId": token_id})


def _json_or_text(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text


def _timeout_arg(timeout: float | None):
    # httpx treats an explicit None as "no timeout"; defer to the client default.
    return httpx.USE_CLIENT_DEFAULT if timeout is None else timeout
