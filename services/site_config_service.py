"""
Site configuration resolution and update, scoped to the authenticated caller.

Sites are looked up by (site_id, caller_id), so a caller never sees another
caller's site even when both use the same identifier. Configs are keyed by
the site's surrogate key.
"""

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from core.results import ConfigFailure, Err, Ok
from models.records import ConfigResult, SiteRecord
from models.site_config import default_config, filter_updates, normalize_config
from store.errors import DuplicateRecordError, StoreError
from store.protocol import ConfigStore, Row
from utils.logging import get_logger

logger = get_logger(__name__)

ConfigOutcome = Ok[ConfigResult] | Err[ConfigFailure]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _check_request(site_id: Any, caller_id: Any) -> Err[ConfigFailure] | None:
    if not site_id or not isinstance(site_id, str):
        return Err(ConfigFailure.INVALID_REQUEST, "Invalid siteId: must be a non-empty string")
    if not caller_id:
        return Err(ConfigFailure.INVALID_REQUEST, "Invalid caller: authentication required")
    return None


class SiteConfigService:
    """Get-or-create and whitelisted update of per-site accessibility configs."""

    def __init__(self, store: ConfigStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    async def resolve_config(self, site_id: str, caller_id: str) -> ConfigOutcome:
        """
        Fetch the caller's config for site_id, creating the site and a
        default config on first use.
        """
        invalid = _check_request(site_id, caller_id)
        if invalid:
            return invalid

        try:
            site = await self._resolve_site(site_id, caller_id)
            row = await self._resolve_site_config(site)
        except StoreError as e:
            logger.error(
                "config_resolve_failed",
                extra={"site_id": site_id, "caller_id": caller_id, "error": str(e), "code": e.code},
            )
            return Err(ConfigFailure.STORAGE_FAILURE, "Failed to fetch site configuration", e)

        return Ok(ConfigResult(site_id=site_id, config=normalize_config(row)))

    async def update_config(self, site_id: str, caller_id: str, updates: Mapping[str, Any]) -> ConfigOutcome:
        """
        Apply whitelisted fields from updates to an existing site's config.

        The site must already exist for this caller; it is never created here.
        Unknown keys are dropped silently. When no key survives the filter the
        call succeeds and returns the current config unchanged.
        """
        invalid = _check_request(site_id, caller_id)
        if invalid:
            return invalid
        if not isinstance(updates, Mapping):
            return Err(ConfigFailure.INVALID_REQUEST, "Invalid updates: must be an object")
        if not updates:
            return Err(ConfigFailure.EMPTY_UPDATE, "Update payload is required")

        try:
            found = await self._store.find_site(site_id, caller_id)
            if found is None:
                logger.info("config_update_site_not_found", extra={"site_id": site_id, "caller_id": caller_id})
                return Err(ConfigFailure.SITE_NOT_FOUND, "Site not found or access denied")
            site = SiteRecord.model_validate(found)

            changes = filter_updates(dict(updates))
            dropped = len(updates) - len(changes)
            if not changes:
                logger.info("config_update_noop", extra={"site_id": site_id, "dropped_fields": dropped})
                row = await self._resolve_site_config(site)
            else:
                row = await self._apply(site, {**changes, "updated_at": self._clock()})
                logger.info(
                    "config_updated",
                    extra={"site_id": site_id, "fields": sorted(changes), "dropped_fields": dropped},
                )
        except StoreError as e:
            logger.error(
                "config_update_failed",
                extra={"site_id": site_id, "caller_id": caller_id, "error": str(e), "code": e.code},
            )
            return Err(ConfigFailure.STORAGE_FAILURE, "Failed to update site configuration", e)

        return Ok(ConfigResult(site_id=site_id, config=normalize_config(row)))

    async def _resolve_site(self, site_id: str, caller_id: str) -> SiteRecord:
        row = await self._store.find_site(site_id, caller_id)
        if row is not None:
            return SiteRecord.model_validate(row)

        try:
            row = await self._store.insert_site(site_id, caller_id)
        except StoreError:
            # A concurrent first request may have created it; look once more.
            row = await self._store.find_site(site_id, caller_id)
            if row is None:
                raise
            logger.info("site_create_race_recovered", extra={"site_id": site_id, "caller_id": caller_id})
        else:
            logger.info("site_created", extra={"site_id": site_id, "caller_id": caller_id, "site_key": row.get("id")})
        return SiteRecord.model_validate(row)

    async def _resolve_site_config(self, site: SiteRecord) -> Row:
        row = await self._store.find_config(site.id)
        if row is not None:
            return row

        try:
            row = await self._store.insert_config(site.id, default_config())
        except DuplicateRecordError:
            row = await self._store.find_config(site.id)
            if row is None:
                raise
            logger.info("config_create_race_recovered", extra={"site_id": site.site_id})
        else:
            logger.info("config_created", extra={"site_id": site.site_id, "site_key": site.id})
        return row

    async def _apply(self, site: SiteRecord, changes: Row) -> Row:
        row = await self._store.update_config(site.id, changes)
        if row is not None:
            return row
        # Site exists without a config row: create the defaults, then retry.
        await self._resolve_site_config(site)
        row = await self._store.update_config(site.id, changes)
        if row is None:
            raise StoreError("Config update returned no data")
        return row
