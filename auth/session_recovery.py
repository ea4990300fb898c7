from __future__ import annotations

import inspect
import urllib.parse
from typing import Awaitable, Callable, Union

from webtrace_client.constants import LOGGER, LOGIN_PATH, REDIRECT_TARGET_KEY

from .identity import IdentityStore
from .storage import KeyValueStorage

MaybeAwaitable = Union[None, Awaitable[None]]
Navigator = Callable[[str], MaybeAwaitable]
Notifier = Callable[[str, str], MaybeAwaitable]
LocationProvider = Callable[[], str]
CacheClearer = Callable[[], MaybeAwaitable]


async def call_maybe_async(fn: Callable, *args) -> None:
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


def log_notifier(level: str, message: str) -> None:
    """Default notifier: non-blocking, writes to the client logger."""
    if level == "error":
        LOGGER.error("%s", message)
    elif level == "warning":
        LOGGER.warning("%s", message)
    else:
        LOGGER.info("%s", message)


def log_navigator(url: str) -> None:
    LOGGER.warning("Re-authentication required: %s", url)


def build_login_url(login_path: str, location: str | None) -> str:
    if not location:
        return login_path
    separator = "&" if "?" in login_path else "?"
    return f"{login_path}{separator}{urllib.parse.urlencode({'redirect': location})}"


class SessionRecoveryHook:
    def __init__(
        self,
        *,
        identity: IdentityStore,
        session_storage: KeyValueStorage,
        location_provider: LocationProvider,
        navigator: Navigator = log_navigator,
        notifier: Notifier = log_notifier,
        login_path: str = LOGIN_PATH,
        cache_clearers: list[CacheClearer] | None = None,
    ) -> None:
        self._identity = identity
        self._session_storage = session_storage
        self._location_provider = location_provider
        self._navigator = navigator
        self._notifier = notifier
        self._login_path = login_path
        self._cache_clearers = list(cache_clearers or [])
        self._redirected = False

    @property
    def redirected(self) -> bool:
        return self._redirected

    def add_cache_clearer(self, clearer: CacheClearer) -> None:
        self._cache_clearers.append(clearer)

    def reset(self) -> None:
        self._redirected = False

    async def enter_terminal_expiry(self) -> bool:
        # The guard flips before the first await so concurrent callers no-op.
        if self._redirected:
            LOGGER.debug("Terminal expiry already handled; skipping redirect")
            return False
        self._redirected = True

        location = self._location_provider()
        try:
            await self._session_storage.set(REDIRECT_TARGET_KEY, location)
        except (OSError, ValueError, RuntimeError) as error:
            LOGGER.warning("Failed to record redirect target: %s", error)

        await self._identity.clear_credential()
        for clearer in self._cache_clearers:
            try:
                await call_maybe_async(clearer)
            except Exception:
                LOGGER.exception("Cache clearer failed during session expiry")

        try:
            await call_maybe_async(
                self._notifier, "warning", "Your session has expired. Please sign in again."
            )
        except Exception:
            LOGGER.exception("Expiry notifier failed")

        login_url = build_login_url(self._login_path, location)
        LOGGER.warning("Session expired; redirecting to %s", login_url)
        await call_maybe_async(self._navigator, login_url)
        return True


def _is_safe_redirect(target: str) -> bool:
    parsed = urllib.parse.urlparse(target)
    if parsed.scheme or parsed.netloc:
        return False
    return target.startswith("/") and not target.startswith("//")


async def consume_redirect_target(
    session_storage: KeyValueStorage,
    query_redirect: str | None = None,
    *,
    default: str = "/",
) -> str:
    """Resolve where to send the user after re-authentication.

    The ``redirect`` query parameter wins over the stored target; the stored
    key is deleted either way. Absolute URLs are refused.
    """
    stored = await session_storage.get(REDIRECT_TARGET_KEY)
    await session_storage.delete(REDIRECT_TARGET_KEY)

    for candidate in (query_redirect, stored):
        if candidate and _is_safe_redirect(candidate):
            return candidate
    return default
