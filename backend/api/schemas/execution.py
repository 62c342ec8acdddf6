"""Pydantic schemas for code execution."""

from pydantic import BaseModel, Field


class ExecutionRequest(BaseModel):
    """Request to execute code in the Deno sandbox."""

    code: str = Field(
        ...,
        min_length=1,
        description="Source code to execute",
    )


class ExecutionResponse(BaseModel):
    """Response from code execution."""

    success: bool = Field(..., description="Whether execution completed successfully")
    output: str = Field(default="", description="Standard output from execution")
    error: str | None = Field(default=None, description="Error message if execution failed")
    error_type: str | None = Field(
        default=None,
        description="Failure category (e.g., CapabilityDenied, ScriptFault)",
    )
    required_permission: str | None = Field(
        default=None,
        description="Shortest Deno flag that would avoid a capability denial",
    )
    capability: str | None = Field(
        default=None,
        description="Denied Deno capability (e.g., read, write, net)",
    )
    execution_time_ms: float = Field(default=0.0, description="Execution time in milliseconds")


class PermissionsResponse(BaseModel):
    """Permissions granted to every execution."""

    permissions: list[str] = Field(default_factory=list, description="Active Deno flags")
    text: str = Field(..., description="Human-readable description of the grants")
