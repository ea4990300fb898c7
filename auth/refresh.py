from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable

from webtrace_client.constants import LOGGER
from webtrace_client.errors import RefreshFailure, UnauthorizedError

from .identity import IdentityStore
from .models import ApiEnvelope, ApiRequest, PendingRequest, RefreshState, RequestContext
from .session_recovery import SessionRecoveryHook

RefreshCall = Callable[[], Awaitable[str]]
Replay = Callable[[ApiRequest, RequestContext], Awaitable[ApiEnvelope]]


class RefreshCoordinator:
    """Single-flight credential refresh with queuing of concurrent 401s.

    Only one refresh call is in flight at a time. Requests that fail with 401
    while it runs wait in a FIFO queue and are replayed (or rejected with
    their own 401) once it settles. A request that was already replayed once
    and fails with 401 again goes straight to terminal expiry.
    """

    def __init__(
        self,
        *,
        identity: IdentityStore,
        refresh_call: RefreshCall,
        recovery: SessionRecoveryHook,
    ) -> None:
        self._identity = identity
        self._refresh_call = refresh_call
        self._recovery = recovery
        self._state = RefreshState.IDLE
        self._pending: deque[PendingRequest] = deque()

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def recover(
        self,
        request: ApiRequest,
        context: RequestContext,
        error: UnauthorizedError,
        replay: Replay,
    ) -> ApiEnvelope:
        if context.retried:
            LOGGER.warning(
                "Request %s %s unauthorized after refresh; session is terminal",
                request.method,
                request.url,
            )
            await self._recovery.enter_terminal_expiry()
            raise error

        retry_context = context.next_attempt()

        if self._state is RefreshState.REFRESHING:
            future = asyncio.get_running_loop().create_future()
            self._pending.append(PendingRequest(request, retry_context, error, future))
            LOGGER.info(
                "Queued %s %s behind in-flight refresh (queue=%s)",
                request.method,
                request.url,
                len(self._pending),
            )
            await future
            return await replay(request, retry_context)

        # State must change before the first await so that requests failing
        # on the same loop iteration queue instead of refreshing again.
        self._state = RefreshState.REFRESHING
        LOGGER.info("Refreshing credential after 401 on %s %s", request.method, request.url)

        try:
            access_token = await self._refresh_call()
        except asyncio.CancelledError:
            self._settle_pending(RefreshFailure("Credential refresh was cancelled."))
            raise
        except Exception as refresh_error:
            failure = (
                refresh_error
                if isinstance(refresh_error, RefreshFailure)
                else RefreshFailure(str(refresh_error))
            )
            await self._fail(failure)
            raise error from failure

        await self._identity.set_credential(access_token)
        self._settle_pending(None)
        LOGGER.info("Credential refreshed; replaying %s %s", request.method, request.url)
        return await replay(request, retry_context)

    async def _fail(self, failure: RefreshFailure) -> None:
        LOGGER.warning("Credential refresh failed: %s", failure)
        self._settle_pending(failure)
        await self._recovery.enter_terminal_expiry()

    def _settle_pending(self, failure: RefreshFailure | None) -> None:
        pending = list(self._pending)
        self._pending.clear()
        self._state = RefreshState.IDLE

        # Waiters wake in enqueue order, so replays are issued in that order.
        for item in pending:
            if item.future.done():
                continue
            if failure is None:
                item.future.set_result(None)
            else:
                item.error.__cause__ = failure
                item.future.set_exception(item.error)
