"""Health check schemas."""

from typing import Dict

from pydantic import BaseModel


class SourceHealth(BaseModel):
    """Configuration of one enabled source."""

    mode: str
    adapter_type: str
    timeout_seconds: float


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str
    environment: str
    sources: Dict[str, SourceHealth] = {}
