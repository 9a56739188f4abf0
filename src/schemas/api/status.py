from typing import Dict

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: str = Field("online", description="Service status")
    version: str = Field(..., description="API version")


class HealthResponse(BaseModel):
    """Health check for the API and its backends."""

    status: str = Field(..., description="ok or degraded")
    version: str
    services: Dict[str, str] = Field(default_factory=dict)
