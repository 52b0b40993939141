"""
Accessibility config API. All routes require an API key.
Site ownership comes from the authenticated caller, never from the request.
"""

from typing import Any

from fastapi import APIRouter, Body, Query

from core.dependencies import CurrentCaller, SiteConfigServiceDep
from core.errors import ApiError, raise_for_failure
from core.results import Err
from models.schemas import ConfigEnvelope

router = APIRouter(prefix="/api/accessibility", tags=["accessibility"])


@router.get("/config", response_model=ConfigEnvelope)
async def get_config(
    caller: CurrentCaller,
    service: SiteConfigServiceDep,
    site_id: str | None = Query(default=None, alias="siteId", max_length=255),
) -> ConfigEnvelope:
    """Get the accessibility config for a site, creating site and defaults on first use."""
    if not site_id:
        raise ApiError(400, "MissingParameter", "siteId query parameter is required")
    result = await service.resolve_config(site_id, caller.caller_id)
    if isinstance(result, Err):
        raise_for_failure(result)
    return ConfigEnvelope(data=result.value)


@router.put("/sites/{site_id}/config", response_model=ConfigEnvelope)
async def update_config(
    site_id: str,
    caller: CurrentCaller,
    service: SiteConfigServiceDep,
    updates: Any = Body(default=None),
) -> ConfigEnvelope:
    """
    Update config fields for a site the caller has already resolved.
    Unrecognised keys are ignored; a body with none of the known keys leaves the config unchanged.
    """
    if not isinstance(updates, dict):
        raise ApiError(400, "InvalidBody", "Update payload must be a JSON object")
    result = await service.update_config(site_id, caller.caller_id, updates)
    if isinstance(result, Err):
        raise_for_failure(result)
    return ConfigEnvelope(data=result.value)
