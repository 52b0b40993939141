"""
FastAPI dependency injection: settings, store-backed services, API key auth.
Services are built once in the app lifespan and read from app.state.
"""

from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader

from core.config import Settings, get_settings
from core.errors import raise_for_failure
from core.results import Err
from models.records import AuthenticatedCaller
from services.credential_service import CredentialResolver
from services.site_config_service import SiteConfigService

SettingsDep = Annotated[Settings, Depends(get_settings)]

api_key_scheme = APIKeyHeader(name=get_settings().API_KEY_HEADER, auto_error=False)


def get_credential_resolver(request: Request) -> CredentialResolver:
    return request.app.state.credential_resolver


def get_site_config_service(request: Request) -> SiteConfigService:
    return request.app.state.site_config_service


async def get_current_caller(
    api_key: Annotated[str | None, Security(api_key_scheme)],
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
) -> AuthenticatedCaller:
    """Required API key auth: 401 if missing, 403 if unknown or disabled, 500 if the store is down."""
    result = await resolver.authenticate(api_key)
    if isinstance(result, Err):
        raise_for_failure(result)
    return result.value


CurrentCaller = Annotated[AuthenticatedCaller, Depends(get_current_caller)]
SiteConfigServiceDep = Annotated[SiteConfigService, Depends(get_site_config_service)]
