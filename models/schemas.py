"""
Pydantic schemas for API responses.
Keeps the success/failure envelope explicit across routes.
"""

from pydantic import BaseModel, Field

from models.records import ConfigResult


class ErrorDetail(BaseModel):
    """Standard failure payload. ``error`` is the stable failure kind."""

    success: bool = False
    error: str
    message: str

    model_config = {"extra": "forbid"}


class ConfigEnvelope(BaseModel):
    """Successful config response."""

    success: bool = True
    data: ConfigResult

    model_config = {"extra": "forbid"}


class HealthResponse(BaseModel):
    """Minimal health payload for probes."""

    status: str = "ok"
    service: str = "accessibility-hub"


class ReadinessResponse(BaseModel):
    """Readiness: store backend reachability."""

    ready: bool = True
    checks: dict[str, str] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}
