"""
API key authentication: maps a raw key to the caller it is bound to.
Every call performs a fresh lookup; there is no cache in front of the store.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from core.results import AuthFailure, Err, Ok
from models.records import AuthenticatedCaller, CredentialRecord
from store.errors import StoreError
from store.protocol import ConfigStore
from utils.logging import get_logger, mask_credential

logger = get_logger(__name__)

AuthResult = Ok[AuthenticatedCaller] | Err[AuthFailure]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CredentialResolver:
    """
    Resolves API keys against the credentials collection.
    On success, last_used_at is refreshed by a detached task that never
    affects the authentication result.
    """

    def __init__(self, store: ConfigStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    async def authenticate(self, raw_credential: str | None) -> AuthResult:
        if not raw_credential:
            return Err(AuthFailure.MISSING_CREDENTIAL, "API key is missing. Please provide a valid API key.")

        try:
            row = await self._store.find_credential(raw_credential)
        except StoreError as e:
            logger.error("credential_lookup_failed", extra={"error": str(e), "code": e.code})
            return Err(
                AuthFailure.RESOLVER_UNAVAILABLE,
                "An error occurred while validating your API key.",
                e,
            )

        if row is None:
            logger.warning("credential_invalid", extra={"key_prefix": mask_credential(raw_credential)})
            return Err(AuthFailure.INVALID_CREDENTIAL, "The provided API key is not valid.")

        credential = CredentialRecord.model_validate(row)
        now = self._clock()
        if not credential.is_active or credential.is_expired(now):
            logger.warning(
                "credential_disabled",
                extra={"credential_id": credential.id, "expired": credential.is_expired(now)},
            )
            return Err(
                AuthFailure.DISABLED_CREDENTIAL,
                "This API key has been disabled. Please contact support or use a different key.",
            )

        self._schedule_touch(credential.id, now)
        return Ok(AuthenticatedCaller(caller_id=credential.user_id, credential_id=credential.id))

    def _schedule_touch(self, credential_id: str, used_at: datetime) -> None:
        task = asyncio.create_task(self._touch(credential_id, used_at))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _touch(self, credential_id: str, used_at: datetime) -> None:
        try:
            await self._store.touch_credential(credential_id, used_at)
        except Exception as e:
            logger.warning(
                "last_used_update_failed",
                extra={"credential_id": credential_id, "error": str(e), "error_type": type(e).__name__},
            )

    @property
    def pending_updates(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight last_used_at updates. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
