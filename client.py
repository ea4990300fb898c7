from __future__ import annotations

import httpx

from auth.identity import IdentityStore
from auth.models import ApiEnvelope, ApiRequest, RefreshState, RequestContext
from auth.refresh import RefreshCoordinator
from auth.session_recovery import (
    LocationProvider,
    Navigator,
    Notifier,
    SessionRecoveryHook,
    consume_redirect_target,
    log_navigator,
    log_notifier,
)
from auth.storage import FileStorage, KeyValueStorage, MemoryStorage, storage_path_for_origin
from webtrace_client.constants import APP_VERSION, LOGGER
from webtrace_client.env import ClientSettings, load_env, load_settings, setup_logging, validate_env
from webtrace_client.errors import (
    ForbiddenError,
    NetworkUnavailable,
    NotFoundError,
    OtherClientError,
    Outcome,
    PipelineError,
    RefreshFailure,
    RequestTimeout,
    SendFailure,
    ServerError,
    UnauthorizedError,
)
from webtrace_client.http import build_log_hooks, classify_response, decorate_request
from webtrace_client.pipeline import ApiClient


def _root_location() -> str:
    return "/"


def create_client(
    settings: ClientSettings | None = None,
    *,
    persistent_storage: KeyValueStorage | None = None,
    session_storage: KeyValueStorage | None = None,
    location_provider: LocationProvider = _root_location,
    navigator: Navigator = log_navigator,
    notifier: Notifier = log_notifier,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ApiClient:
    if settings is None:
        load_env()
        validate_env()
        settings = load_settings()
    debug_enabled = setup_logging() or settings.debug

    if persistent_storage is None:
        persistent_storage = FileStorage(
            storage_path_for_origin(settings.storage_dir, settings.base_url)
        )
    if session_storage is None:
        session_storage = MemoryStorage()

    identity = IdentityStore(persistent_storage)
    recovery = SessionRecoveryHook(
        identity=identity,
        session_storage=session_storage,
        location_provider=location_provider,
        navigator=navigator,
        notifier=notifier,
        login_path=settings.login_path,
    )

    async def attach_identity(request: httpx.Request) -> None:
        await decorate_request(request, identity)

    log_request, log_response = build_log_hooks(debug_enabled)

    http_client = httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=settings.timeout,
        transport=transport,
        event_hooks={
            "request": [attach_identity, log_request],
            "response": [log_response],
        },
    )
    LOGGER.info("API client %s ready for %s", APP_VERSION, settings.base_url)
    return ApiClient(
        http_client=http_client,
        identity=identity,
        session_storage=session_storage,
        recovery=recovery,
        notifier=notifier,
        refresh_path=settings.refresh_path,
        refresh_timeout=settings.refresh_timeout,
    )
