"""Run untrusted TypeScript and Python code inside the Deno sandbox.

TypeScript runs directly under ``deno run``. Python runs on Pyodide inside
Deno in two sequential processes: the first resolves and downloads the
packages the script imports, with a fixed set of extra permissions; the
second runs the script with only the caller's permissions.
"""

import asyncio
import contextlib
import json
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from string import Template

from common.config import settings
from common.logging import get_logger
from executor.errors import (
    CapabilityDenied,
    ExecutionFailure,
    ProcessStartFailure,
    classify,
    exit_diagnostic,
)
from executor.paths import reduce_paths
from executor.permissions import granted_paths, with_workspace_read
from executor.workspace import Workspace, open_workspace

logger = get_logger(__name__)

TYPESCRIPT_FILE = "script.ts"
PYTHON_FILE = "script.py"
DENO_CONFIG_FILE = "deno.json"
RESOLVE_DRIVER_FILE = ".pythonImportScript.ts"
EXECUTE_DRIVER_FILE = ".pythonExecuteScript.ts"
PACKAGE_CACHE_DIR = "node_modules"

# Loads Pyodide, finds the script's imports and downloads them into node_modules.
# The script itself is not run.
RESOLVE_DRIVER = Template(
    """import pyodideModule from "npm:pyodide/pyodide.js";
const pyodide = await pyodideModule.loadPyodide();
const scriptContent = new TextDecoder("utf-8").decode(await Deno.readFile($script));
await pyodide.loadPackagesFromImports(scriptContent, { messageCallback: console.error, errorCallback: console.error });
"""
)

# Packages are already cached; integrity checks are off because the network
# may no longer be reachable.
EXECUTE_DRIVER = Template(
    """import pyodideModule from "npm:pyodide/pyodide.js";
const pyodide = await pyodideModule.loadPyodide();
const scriptContent = new TextDecoder("utf-8").decode(await Deno.readFile($script));
await pyodide.loadPackagesFromImports(scriptContent, { checkIntegrity: false, messageCallback: console.error, errorCallback: console.error });
const mounts: string[] = $mounts;
for (const path of mounts) {
  pyodide.FS.mkdirTree(path);
  pyodide.FS.mount(pyodide.FS.filesystems.NODEFS, { root: path }, path);
}
pyodide.FS.chdir($workspace);
await pyodide.runPythonAsync(scriptContent);
"""
)


class Language(str, Enum):
    """Payload languages the sandbox can run."""

    TYPESCRIPT = "typescript"
    PYTHON = "python"


class Phase(str, Enum):
    """States of the Python pipeline."""

    RESOLVING = "resolving"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ProcessOutput:
    """Captured output of a successful Deno process."""

    stdout: str
    stderr: str


@dataclass
class ExecutionResult:
    """Result of code execution."""

    success: bool
    output: str = ""
    error: str | None = None
    error_type: str | None = None
    required_permission: str | None = None
    capability: str | None = None  # denied capability, e.g. "read"
    execution_time_ms: float = 0.0


async def run_deno(
    args: Sequence[str],
    cwd: str,
    deno_executable: str | None = None,
) -> ProcessOutput:
    """Run ``deno run <args>`` and wait for it to exit.

    Raises:
        ProcessStartFailure: If the process cannot be started.
        ExecutionFailure: The classified failure for a non-zero exit.
    """
    cmd = [deno_executable or settings.deno_executable, "run", *args]
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise ProcessStartFailure(f"Failed to start Deno: {e}") from e

    try:
        stdout_bytes, stderr_bytes = await process.communicate()
    except asyncio.CancelledError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        # Reap the child before the workspace is removed
        await asyncio.shield(process.wait())
        raise

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    if process.returncode != 0:
        raise classify(exit_diagnostic(process.returncode, stderr))
    return ProcessOutput(stdout=stdout, stderr=stderr)


async def run_typescript(
    code: str,
    permissions: Sequence[str],
    deno_executable: str | None = None,
) -> str:
    """Execute a TypeScript script with the given Deno permission flags.

    Args:
        code: The TypeScript source to execute.
        permissions: Deno permission flags granted by the caller.
        deno_executable: Overrides the configured Deno binary.

    Returns:
        The script's standard output.

    Raises:
        ExecutionFailure: A classified failure (capability denial, script
            error, start failure or unrecognised diagnostic).
    """
    with open_workspace() as workspace:
        config_path = workspace.write_file(
            DENO_CONFIG_FILE, json.dumps({"nodeModulesDir": "auto"}, indent=4)
        )
        script_path = workspace.write_file(TYPESCRIPT_FILE, code)

        logger.info(f"Running TypeScript (length={len(code)}) in {workspace.root}")
        output = await run_deno(
            [
                "--config",
                config_path,
                *with_workspace_read(permissions, workspace.root),
                script_path,
            ],
            cwd=workspace.root,
            deno_executable=deno_executable,
        )
        return output.stdout


class PythonPipeline:
    """Resolve the script's packages, then run it.

    The Resolving phase gets read access to the workspace, write access to
    the package cache and network access to the package host only. The
    Executing phase gets the caller's permissions plus workspace read.
    Executing never starts unless Resolving succeeded.
    """

    def __init__(
        self,
        workspace: Workspace,
        permissions: Sequence[str],
        deno_executable: str | None = None,
        package_host: str | None = None,
    ):
        self.workspace = workspace
        self.permissions = list(permissions)
        self.deno_executable = deno_executable
        self.package_host = package_host or settings.package_host
        self.phase = Phase.RESOLVING
        self.history: list[Phase] = [Phase.RESOLVING]

    def _enter(self, phase: Phase) -> None:
        logger.debug(f"Python pipeline {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)

    @property
    def mounts(self) -> list[str]:
        """Host directories bound into Pyodide's filesystem."""
        return reduce_paths(granted_paths(self.permissions), self.workspace.root)

    def resolve_args(self, driver_path: str) -> list[str]:
        root = self.workspace.root
        return [
            "--node-modules-dir=auto",
            f"--allow-read={root}",
            f"--allow-write={root}/{PACKAGE_CACHE_DIR}/",
            f"--allow-net={self.package_host}",
            driver_path,
        ]

    def execute_args(self, driver_path: str) -> list[str]:
        return [
            "--node-modules-dir=auto",
            # Needed so that urllib / requests work
            "--v8-flags=--experimental-wasm-stack-switching",
            *with_workspace_read(self.permissions, self.workspace.root),
            driver_path,
        ]

    async def resolve(self) -> None:
        driver = RESOLVE_DRIVER.substitute(script=json.dumps(PYTHON_FILE))
        driver_path = self.workspace.write_file(RESOLVE_DRIVER_FILE, driver)
        output = await run_deno(
            self.resolve_args(driver_path),
            cwd=self.workspace.root,
            deno_executable=self.deno_executable,
        )
        if output.stderr:
            logger.debug(f"Package resolution output:\n{output.stderr}")

    async def execute(self) -> str:
        driver = EXECUTE_DRIVER.substitute(
            script=json.dumps(PYTHON_FILE),
            mounts=json.dumps(self.mounts),
            workspace=json.dumps(self.workspace.root),
        )
        driver_path = self.workspace.write_file(EXECUTE_DRIVER_FILE, driver)
        output = await run_deno(
            self.execute_args(driver_path),
            cwd=self.workspace.root,
            deno_executable=self.deno_executable,
        )
        return output.stdout

    async def run(self) -> str:
        """Run both phases and return the script's standard output."""
        try:
            await self.resolve()
            self._enter(Phase.EXECUTING)
            stdout = await self.execute()
        except ExecutionFailure:
            self._enter(Phase.FAILED)
            raise
        self._enter(Phase.DONE)
        return stdout


async def run_python(
    code: str,
    permissions: Sequence[str],
    deno_executable: str | None = None,
    package_host: str | None = None,
) -> str:
    """Execute a Python script on Pyodide with the given Deno permission flags.

    Returns:
        The script's standard output.

    Raises:
        ExecutionFailure: A classified failure from either phase.
    """
    with open_workspace() as workspace:
        workspace.write_file(PYTHON_FILE, code)
        logger.info(f"Running Python (length={len(code)}) in {workspace.root}")
        pipeline = PythonPipeline(
            workspace,
            permissions,
            deno_executable=deno_executable,
            package_host=package_host,
        )
        return await pipeline.run()


async def execute(
    language: Language | str,
    code: str,
    permissions: Sequence[str],
) -> ExecutionResult:
    """Run code in the given language and fold any failure into the result."""
    language = Language(language)
    runner = run_typescript if language is Language.TYPESCRIPT else run_python
    start_time = time.perf_counter()

    try:
        output = await runner(code, permissions)
    except ExecutionFailure as e:
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"{language.value} execution failed ({e.kind}) after {elapsed_ms:.0f}ms")
        denied = e if isinstance(e, CapabilityDenied) else None
        return ExecutionResult(
            success=False,
            error=str(e),
            error_type=e.kind,
            required_permission=denied.flag if denied else None,
            capability=denied.capability if denied else None,
            execution_time_ms=elapsed_ms,
        )

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"{language.value} execution succeeded after {elapsed_ms:.0f}ms")
    return ExecutionResult(success=True, output=output, execution_time_ms=elapsed_ms)
