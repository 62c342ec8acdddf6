"""API schemas package."""

from api.schemas.execution import (
    ExecutionRequest,
    ExecutionResponse,
    PermissionsResponse,
)

__all__ = [
    "ExecutionRequest",
    "ExecutionResponse",
    "PermissionsResponse",
]
