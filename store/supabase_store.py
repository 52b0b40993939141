"""
Supabase (PostgREST) implementation of ConfigStore.

Credentials live in the public schema (api_keys); sites and site_configs in the
accessibility schema. One async client per schema, both created at startup.
Table layout: sql/schema.sql.
"""

from datetime import datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from store.errors import DuplicateRecordError, StoreError
from store.protocol import Row
from utils.logging import get_logger

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"
# Older postgrest-py raises on maybe_single() with zero rows instead of returning None.
NO_ROWS = "204"

_CREDENTIAL_COLUMNS = "id, api_key, user_id, name, is_active, expires_at, last_used_at"
_SITE_COLUMNS = "id, site_id, user_id"


def _jsonable(values: Row) -> Row:
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in values.items()}


async def _execute(query: Any, action: str) -> Any:
    """Run a PostgREST query, translating driver errors to StoreError."""
    try:
        return await query.execute()
    except APIError as e:
        if e.code == NO_ROWS:
            return None
        if e.code == UNIQUE_VIOLATION:
            raise DuplicateRecordError(f"{action}: {e.message}", code=e.code) from e
        raise StoreError(f"{action}: {e.message}", code=e.code) from e
    except httpx.HTTPError as e:
        raise StoreError(f"{action}: {e}") from e


def _single(response: Any) -> Row | None:
    if response is None or not response.data:
        return None
    data = response.data
    return data[0] if isinstance(data, list) else data


class SupabaseStore:
    """ConfigStore backed by two Supabase clients (credentials, configs)."""

    backend = "supabase"

    def __init__(self, credentials_client: AsyncClient, config_client: AsyncClient) -> None:
        self._credentials = credentials_client
        self._configs = config_client

    @classmethod
    async def connect(cls, url: str, key: str, *, credentials_schema: str, config_schema: str) -> "SupabaseStore":
        credentials_client = await acreate_client(url, key, options=_options(credentials_schema))
        config_client = await acreate_client(url, key, options=_options(config_schema))
        logger.info(
            "supabase_connected",
            extra={"credentials_schema": credentials_schema, "config_schema": config_schema},
        )
        return cls(credentials_client, config_client)

    async def find_credential(self, api_key: str) -> Row | None:
        query = (
            self._credentials.table("api_keys")
            .select(_CREDENTIAL_COLUMNS)
            .eq("api_key", api_key)
            .maybe_single()
        )
        return _single(await _execute(query, "query api_keys"))

    async def touch_credential(self, credential_id: str, used_at: datetime) -> None:
        query = (
            self._credentials.table("api_keys")
            .update({"last_used_at": used_at.isoformat()})
            .eq("id", credential_id)
        )
        await _execute(query, "update api_keys.last_used_at")

    async def find_site(self, site_id: str, user_id: str) -> Row | None:
        query = (
            self._configs.table("sites")
            .select(_SITE_COLUMNS)
            .eq("site_id", site_id)
            .eq("user_id", user_id)
            .maybe_single()
        )
        return _single(await _execute(query, "query sites"))

    async def insert_site(self, site_id: str, user_id: str) -> Row:
        query = self._configs.table("sites").insert({"site_id": site_id, "user_id": user_id})
        row = _single(await _execute(query, "create site"))
        if row is None:
            raise StoreError("create site: insert returned no row")
        return row

    async def find_config(self, site_key: str) -> Row | None:
        query = self._configs.table("site_configs").select("*").eq("site_id", site_key).maybe_single()
        return _single(await _execute(query, "query site_configs"))

    async def insert_config(self, site_key: str, values: Row) -> Row:
        query = self._configs.table("site_configs").insert({**_jsonable(values), "site_id": site_key})
        row = _single(await _execute(query, "create site config"))
        if row is None:
            raise StoreError("create site config: insert returned no row")
        return row

    async def update_config(self, site_key: str, changes: Row) -> Row | None:
        query = self._configs.table("site_configs").update(_jsonable(changes)).eq("site_id", site_key)
        return _single(await _execute(query, "update site config"))

    async def ping(self) -> bool:
        try:
            await _execute(self._configs.table("sites").select("id").limit(1), "ping")
        except StoreError as e:
            logger.warning("store_ping_failed", extra={"error": str(e)})
            return False
        return True

    async def close(self) -> None:
        await self._credentials.postgrest.aclose()
        await self._configs.postgrest.aclose()


def _options(schema: str) -> AsyncClientOptions:
    return AsyncClientOptions(schema=schema, auto_refresh_token=False, persist_session=False)
