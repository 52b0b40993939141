"""
Store records and core result values.
Rows come back from the store as dicts; these models give them a fixed shape.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class CredentialRecord(BaseModel):
    """Row of the api_keys collection."""

    id: str
    api_key: str
    user_id: str
    is_active: bool | None = True
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    name: str | None = None

    model_config = {"extra": "ignore"}

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        # timestamptz columns come back aware; treat naive values as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now


class SiteRecord(BaseModel):
    """Row of the sites collection. ``id`` is the surrogate key used by site_configs."""

    id: str
    site_id: str
    user_id: str

    model_config = {"extra": "ignore"}


class AuthenticatedCaller(BaseModel):
    """Identity bound to a validated API key."""

    caller_id: str
    credential_id: str

    model_config = {"frozen": True}


class ConfigResult(BaseModel):
    """Resolved configuration for one of the caller's sites."""

    site_id: str
    config: dict[str, Any] = Field(default_factory=dict)
