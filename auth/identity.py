from __future__ import annotations

import secrets
import time

from webtrace_client.constants import ACCESS_TOKEN_KEY, DEVICE_ID_KEY, LOGGER

from .storage import KeyValueStorage

# OSError covers unwritable or missing directories, ValueError covers
# undecodable JSON and RuntimeError a file with the wrong shape.
STORAGE_ERRORS = (OSError, ValueError, RuntimeError)


def generate_device_id(*, now: float | None = None) -> str:
    current = time.time() if now is None else now
    return f"{int(current * 1000):x}-{secrets.token_hex(8)}"


class IdentityStore:
    """Owns the persisted device identifier and bearer credential.

    Storage failures never propagate: the device id falls back to an
    ephemeral value kept in memory, and the credential reads as absent.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._ephemeral_device_id: str | None = None
        # Once a credential write fails the credential lives only in memory.
        self._ephemeral_credential: str | None = None
        self._credential_degraded = False

    async def get_or_create_device_id(self) -> str:
        if self._ephemeral_device_id is not None:
            return self._ephemeral_device_id

        try:
            device_id = await self._storage.get(DEVICE_ID_KEY)
            if device_id:
                return device_id
            device_id = generate_device_id()
            await self._storage.set(DEVICE_ID_KEY, device_id)
            LOGGER.info("Generated device id %s", device_id)
            return device_id
        except STORAGE_ERRORS as error:
            self._ephemeral_device_id = generate_device_id()
            LOGGER.warning(
                "Device id storage unavailable, using ephemeral id %s: %s",
                self._ephemeral_device_id,
                error,
            )
            return self._ephemeral_device_id

    async def get_credential(self) -> str | None:
        if self._credential_degraded:
            return self._ephemeral_credential
        try:
            token = await self._storage.get(ACCESS_TOKEN_KEY)
        except STORAGE_ERRORS as error:
            LOGGER.warning("Credential storage unreadable, continuing unauthenticated: %s", error)
            return None
        return token or None

    async def set_credential(self, token: str) -> None:
        if not self._credential_degraded:
            try:
                await self._storage.set(ACCESS_TOKEN_KEY, token)
                return
            except STORAGE_ERRORS as error:
                LOGGER.warning("Failed to persist credential, keeping it in memory: %s", error)
                self._credential_degraded = True
        self._ephemeral_credential = token

    async def clear_credential(self) -> None:
        self._ephemeral_credential = None
        try:
            await self._storage.delete(ACCESS_TOKEN_KEY)
        except STORAGE_ERRORS as error:
            LOGGER.warning("Failed to clear credential: %s", error)
