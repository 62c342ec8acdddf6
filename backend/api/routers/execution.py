"""Code execution endpoints."""

from fastapi import APIRouter, Depends

from api.schemas.execution import ExecutionRequest, ExecutionResponse, PermissionsResponse
from api.services.executor_service import ExecutorService, get_executor_service
from executor import Language
from executor.permissions import SUPPORTED_FLAGS

router = APIRouter()


@router.post("/execute/typescript", response_model=ExecutionResponse)
async def run_typescript(
    request: ExecutionRequest,
    executor: ExecutorService = Depends(get_executor_service),
) -> ExecutionResponse:
    """Execute TypeScript code in the Deno sandbox.

    The code runs with the server's configured Deno permissions plus read
    access to its own private workspace.

    Args:
        request: The execution request containing the code.
        executor: The executor service (injected).

    Returns:
        ExecutionResponse with stdout or a classified error. A capability
        denial carries the flag the server must be restarted with.
    """
    return await executor.execute(Language.TYPESCRIPT, request.code)


@router.post("/execute/python", response_model=ExecutionResponse)
async def run_python(
    request: ExecutionRequest,
    executor: ExecutorService = Depends(get_executor_service),
) -> ExecutionResponse:
    """Execute Python code on Pyodide inside the Deno sandbox.

    Imported packages are downloaded first in a separate process that can
    only reach the package CDN; the script itself runs with the server's
    configured permissions only.
    """
    return await executor.execute(Language.PYTHON, request.code)


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(
    executor: ExecutorService = Depends(get_executor_service),
) -> PermissionsResponse:
    """Describe the active Deno permissions and the supported flag syntax."""
    if executor.permissions:
        summary = "Current Deno Permissions:\n" + "\n".join(executor.permissions)
    else:
        summary = "No permissions currently enabled. Code will run in a very restricted sandbox."
    return PermissionsResponse(
        permissions=executor.permissions,
        text=f"{summary}\n\n{SUPPORTED_FLAGS}",
    )
