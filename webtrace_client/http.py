from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .constants import (
    ACCEPT_VALUE,
    DEFAULT_CONTENT_TYPE,
    DEVICE_ID_HEADER,
    LOGGER,
    REQUESTED_WITH_HEADER,
    REQUESTED_WITH_VALUE,
)
from .errors import Outcome, SendFailure

if TYPE_CHECKING:
    from auth.identity import IdentityStore


async def decorate_request(request: httpx.Request, identity: "IdentityStore") -> None:
    try:
        device_id = await identity.get_or_create_device_id()
        if device_id:
            request.headers[DEVICE_ID_HEADER] = device_id

        credential = await identity.get_credential()
        if credential:
            request.headers["Authorization"] = f"Bearer {credential}"
        else:
            request.headers.pop("Authorization", None)

        request.headers[REQUESTED_WITH_HEADER] = REQUESTED_WITH_VALUE
        request.headers.setdefault("Accept", ACCEPT_VALUE)

        if "content-type" not in request.headers and _has_body(request):
            request.headers["Content-Type"] = DEFAULT_CONTENT_TYPE
    except SendFailure:
        raise
    except Exception as error:
        raise SendFailure(f"Failed to prepare request headers: {error}") from error


def _has_body(request: httpx.Request) -> bool:
    if "content-length" in request.headers:
        return request.headers["content-length"] != "0"
    return "transfer-encoding" in request.headers


def classify_status(status_code: int) -> Outcome:
    if status_code < 400:
        return Outcome.SUCCESS
    if status_code == 401:
        return Outcome.UNAUTHORIZED
    if status_code == 403:
        return Outcome.FORBIDDEN
    if status_code == 404:
        return Outcome.NOT_FOUND
    if status_code >= 500:
        return Outcome.SERVER_ERROR
    return Outcome.OTHER_CLIENT_ERROR


def _body_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("msg", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _friendly_error_message(outcome: Outcome, status_code: int | None = None) -> str:
    if outcome is Outcome.UNAUTHORIZED:
        return "Your session has expired. Please sign in again."
    if outcome is Outcome.FORBIDDEN:
        return "You don't have permission to perform this action."
    if outcome is Outcome.NOT_FOUND:
        return "The requested resource was not found."
    if outcome is Outcome.SERVER_ERROR:
        return "The server is experiencing issues. Please try again later."
    if outcome is Outcome.TIMEOUT:
        return "The request timed out. Please try again."
    if outcome is Outcome.NETWORK_UNAVAILABLE:
        return "Network unavailable. Check your connection and try again."
    if outcome is Outcome.SEND_FAILURE:
        return "The request could not be sent."
    return f"Request failed with status {status_code}."


def classify_response(response: httpx.Response) -> tuple[Outcome, str]:
    outcome = classify_status(response.status_code)
    if outcome is Outcome.SUCCESS:
        return outcome, "OK"
    if outcome is Outcome.OTHER_CLIENT_ERROR:
        message = _body_message(response)
        if message:
            return outcome, message
    return outcome, _friendly_error_message(outcome, response.status_code)


def classify_transport_error(error: Exception) -> tuple[Outcome, str]:
    if isinstance(error, httpx.TimeoutException):
        outcome = Outcome.TIMEOUT
    elif isinstance(error, httpx.TransportError):
        outcome = Outcome.NETWORK_UNAVAILABLE
    elif isinstance(error, httpx.DecodingError):
        return Outcome.SEND_FAILURE, "The server response could not be decoded."
    else:
        outcome = Outcome.SEND_FAILURE
    return outcome, _friendly_error_message(outcome)


def build_log_hooks(debug_enabled: bool):
    async def log_request(request: httpx.Request) -> None:
        if not debug_enabled:
            return
        LOGGER.info("API request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        if not debug_enabled:
            return
        LOGGER.info(
            "API response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > 1000:
                text = text[:1000] + "...<truncated>"
            LOGGER.warning("API error body: %s", text)

    return log_request, log_response
