from __future__ import annotations

import enum

import httpx


class Outcome(enum.Enum):
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    NETWORK_UNAVAILABLE = "network_unavailable"
    OTHER_CLIENT_ERROR = "other_client_error"
    SEND_FAILURE = "send_failure"
    REFRESH_FAILURE = "refresh_failure"


class PipelineError(RuntimeError):
    outcome = Outcome.OTHER_CLIENT_ERROR

    def __init__(self, message: str, *, response: httpx.Response | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response
        self.status_code = response.status_code if response is not None else None


class SendFailure(PipelineError):
    """The request could not be built or handed to the transport."""

    outcome = Outcome.SEND_FAILURE


class UnauthorizedError(PipelineError):
    outcome = Outcome.UNAUTHORIZED


class ForbiddenError(PipelineError):
    outcome = Outcome.FORBIDDEN


class NotFoundError(PipelineError):
    outcome = Outcome.NOT_FOUND


class ServerError(PipelineError):
    outcome = Outcome.SERVER_ERROR


class RequestTimeout(PipelineError):
    outcome = Outcome.TIMEOUT


class NetworkUnavailable(PipelineError):
    outcome = Outcome.NETWORK_UNAVAILABLE


class OtherClientError(PipelineError):
    outcome = Outcome.OTHER_CLIENT_ERROR


class RefreshFailure(PipelineError):
    """The refresh call failed; the session cannot be recovered automatically."""

    outcome = Outcome.REFRESH_FAILURE


ERRORS_BY_OUTCOME: dict[Outcome, type[PipelineError]] = {
    Outcome.UNAUTHORIZED: UnauthorizedError,
    Outcome.FORBIDDEN: ForbiddenError,
    Outcome.NOT_FOUND: NotFoundError,
    Outcome.SERVER_ERROR: ServerError,
    Outcome.TIMEOUT: RequestTimeout,
    Outcome.NETWORK_UNAVAILABLE: NetworkUnavailable,
    Outcome.OTHER_CLIENT_ERROR: OtherClientError,
    Outcome.SEND_FAILURE: SendFailure,
    Outcome.REFRESH_FAILURE: RefreshFailure,
}


def error_for(
    outcome: Outcome,
    message: str,
    *,
    response: httpx.Response | None = None,
) -> PipelineError:
    if outcome is Outcome.SUCCESS:
        raise ValueError("SUCCESS has no error type.")
    return ERRORS_BY_OUTCOME[outcome](message, response=response)
