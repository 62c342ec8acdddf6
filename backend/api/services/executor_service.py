"""Execution service for running user code."""

from collections.abc import Sequence

from api.schemas.execution import ExecutionResponse
from common.config import settings
from executor import ExecutionResult, Language, execute


class ExecutorService:
    """Service for executing user-submitted TypeScript and Python code."""

    def __init__(self, permissions: Sequence[str] | None = None):
        """Initialize the executor service.

        Args:
            permissions: Deno flags granted to every execution. Defaults to
                the configured sandbox permissions.
        """
        if permissions is None:
            permissions = settings.sandbox_permissions
        self.permissions = list(permissions)

    async def execute(self, language: Language, code: str) -> ExecutionResponse:
        """Execute code in the Deno sandbox.

        Args:
            language: Payload language.
            code: The source code to execute.

        Returns:
            ExecutionResponse with output or classified error information.
        """
        if len(code.encode("utf-8")) > settings.max_code_size_bytes:
            return ExecutionResponse(
                success=False,
                error=f"Code exceeds maximum size of {settings.max_code_size_bytes} bytes",
                error_type="ValidationError",
            )

        result: ExecutionResult = await execute(language, code, self.permissions)

        return ExecutionResponse(
            success=result.success,
            output=result.output,
            error=result.error,
            error_type=result.error_type,
            required_permission=result.required_permission,
            capability=result.capability,
            execution_time_ms=result.execution_time_ms,
        )


# Singleton instance for dependency injection
_executor_service: ExecutorService | None = None


def get_executor_service() -> ExecutorService:
    """Get the executor service instance (dependency injection)."""
    global _executor_service
    if _executor_service is None:
        _executor_service = ExecutorService()
    return _executor_service
