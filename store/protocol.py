"""
Store protocol shared by the credential and site-config services.

Two logical collections: api_keys (credentials) and sites + site_configs.
Implementations return plain row dicts and raise ``StoreError`` (or
``DuplicateRecordError`` for uniqueness conflicts) on failure.
"""

from datetime import datetime
from typing import Any, Protocol

Row = dict[str, Any]


class ConfigStore(Protocol):
    """Backend for credentials, sites and site configs."""

    backend: str

    async def find_credential(self, api_key: str) -> Row | None:
        """Return the api_keys row for this token, or None."""
        ...

    async def touch_credential(self, credential_id: str, used_at: datetime) -> None:
        """Set last_used_at on a credential."""
        ...

    async def find_site(self, site_id: str, user_id: str) -> Row | None:
        """Return the site owned by user_id with this identifier, or None."""
        ...

    async def insert_site(self, site_id: str, user_id: str) -> Row:
        """Create a site. Raises DuplicateRecordError if (site_id, user_id) exists."""
        ...

    async def find_config(self, site_key: str) -> Row | None:
        """Return the config row keyed by the site's surrogate key, or None."""
        ...

    async def insert_config(self, site_key: str, values: Row) -> Row:
        """Create the config for a site. Raises DuplicateRecordError if one exists."""
        ...

    async def update_config(self, site_key: str, changes: Row) -> Row | None:
        """Apply changes and return the stored row, or None if no config exists."""
        ...

    async def ping(self) -> bool:
        """Return True if the backend answers."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...
