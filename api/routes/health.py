"""
Health and readiness endpoints for load balancers and Kubernetes.
No auth required; keep payload minimal for fast checks.
"""

from fastapi import APIRouter, Request, Response

from core.dependencies import SettingsDep
from models.schemas import HealthResponse, ReadinessResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health(settings: SettingsDep) -> HealthResponse:
    """Liveness: is the process alive."""
    return HealthResponse(service=settings.APP_NAME)


@router.get("/ready", response_model=ReadinessResponse)
async def ready(request: Request, response: Response) -> ReadinessResponse:
    """Readiness: the store answers. 503 when it does not."""
    store = request.app.state.store
    reachable = await store.ping()
    if not reachable:
        response.status_code = 503
    return ReadinessResponse(
        ready=reachable,
        checks={"config": "loaded", "store": f"{store.backend}:{'ok' if reachable else 'unreachable'}"},
    )


@router.get("/live")
async def live(response: Response) -> None:
    """Minimal live check: 200 with no body."""
    response.status_code = 200
