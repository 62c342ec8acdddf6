"""Sandboxed code executor backed by the Deno runtime.

This module runs untrusted TypeScript and Python code with:
- Deno permission flags as the only granted capabilities
- One private, short-lived workspace per invocation
- Two-phase Python execution (package resolution, then the script)
- Classified failures (capability denial, script fault, start failure)
"""

from executor.errors import (
    CapabilityDenied,
    ExecutionFailure,
    Opaque,
    ProcessStartFailure,
    ScriptFault,
    classify,
)
from executor.paths import reduce_paths
from executor.permissions import granted_paths, parse_grant, with_workspace_read
from executor.runner import (
    ExecutionResult,
    Language,
    PythonPipeline,
    execute,
    run_python,
    run_typescript,
)
from executor.workspace import initialize_umask, open_workspace

__all__ = [
    "CapabilityDenied",
    "ExecutionFailure",
    "ExecutionResult",
    "Language",
    "Opaque",
    "ProcessStartFailure",
    "PythonPipeline",
    "ScriptFault",
    "classify",
    "execute",
    "granted_paths",
    "initialize_umask",
    "open_workspace",
    "parse_grant",
    "reduce_paths",
    "run_python",
    "run_typescript",
    "with_workspace_read",
]
