"""Health check endpoint."""

import shutil

from fastapi import APIRouter
from pydantic import BaseModel

from common.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    deno_available: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns the service status, version and whether the Deno binary
    can be found on this host.
    """
    deno_available = shutil.which(settings.deno_executable) is not None
    return HealthResponse(status="healthy", version="0.1.0", deno_available=deno_available)
