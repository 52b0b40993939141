"""
In-process store for tests and local runs.
Every operation yields to the event loop first, so concurrent callers interleave
between a lookup and the insert that follows it, as they would against a real store.
"""

import asyncio
import uuid
from copy import deepcopy
from datetime import UTC, datetime

from store.errors import DuplicateRecordError
from store.protocol import Row


class InMemoryStore:
    """Dict-backed implementation of ConfigStore."""

    backend = "memory"

    def __init__(self) -> None:
        self._credentials: dict[str, Row] = {}
        self._sites: dict[tuple[str, str], Row] = {}
        self._configs: dict[str, Row] = {}

    def add_credential(
        self,
        api_key: str,
        user_id: str,
        *,
        is_active: bool | None = True,
        expires_at: datetime | None = None,
        name: str | None = None,
    ) -> Row:
        """Provision a credential directly. Not part of ConfigStore."""
        row = {
            "id": str(uuid.uuid4()),
            "api_key": api_key,
            "user_id": user_id,
            "name": name,
            "is_active": is_active,
            "created_at": datetime.now(UTC),
            "last_used_at": None,
            "expires_at": expires_at,
        }
        self._credentials[api_key] = row
        return deepcopy(row)

    async def find_credential(self, api_key: str) -> Row | None:
        await asyncio.sleep(0)
        row = self._credentials.get(api_key)
        return deepcopy(row) if row else None

    async def touch_credential(self, credential_id: str, used_at: datetime) -> None:
        await asyncio.sleep(0)
        for row in self._credentials.values():
            if row["id"] == credential_id:
                row["last_used_at"] = used_at
                return

    async def find_site(self, site_id: str, user_id: str) -> Row | None:
        await asyncio.sleep(0)
        row = self._sites.get((site_id, user_id))
        return deepcopy(row) if row else None

    async def insert_site(self, site_id: str, user_id: str) -> Row:
        await asyncio.sleep(0)
        if (site_id, user_id) in self._sites:
            raise DuplicateRecordError(
                f"duplicate key value violates unique constraint on sites ({site_id})",
                code="23505",
            )
        now = datetime.now(UTC)
        row = {
            "id": str(uuid.uuid4()),
            "site_id": site_id,
            "user_id": user_id,
            "name": None,
            "created_at": now,
            "updated_at": now,
        }
        self._sites[(site_id, user_id)] = row
        return deepcopy(row)

    async def find_config(self, site_key: str) -> Row | None:
        await asyncio.sleep(0)
        row = self._configs.get(site_key)
        return deepcopy(row) if row else None

    async def insert_config(self, site_key: str, values: Row) -> Row:
        await asyncio.sleep(0)
        if site_key in self._configs:
            raise DuplicateRecordError(
                f"duplicate key value violates unique constraint on site_configs ({site_key})",
                code="23505",
            )
        now = datetime.now(UTC)
        row = {"id": str(uuid.uuid4()), **values, "site_id": site_key, "created_at": now, "updated_at": now}
        self._configs[site_key] = row
        return deepcopy(row)

    async def update_config(self, site_key: str, changes: Row) -> Row | None:
        await asyncio.sleep(0)
        row = self._configs.get(site_key)
        if row is None:
            return None
        row.update(changes)
        return deepcopy(row)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
