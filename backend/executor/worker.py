"""
Executor Worker - Processes code execution requests from stdin.

Each line on stdin is a JSON request ``{"language": ..., "code": ...}``;
each result is written to stdout as one JSON line. The Deno permission
flags granted to every request are taken from the command line:

    python -m executor.worker --allow-read=/data --allow-net=example.com
"""

import asyncio
import json
import os
import signal
import sys
from collections.abc import Sequence
from dataclasses import asdict

from common.config import settings
from common.logging import configure_logging, get_logger
from executor.runner import Language, execute
from executor.workspace import initialize_umask

logger = get_logger(__name__)


class ExecutorWorker:
    """
    Worker process that handles code execution requests.

    Requests are processed one at a time, each in a fresh workspace.
    """

    def __init__(self, permissions: Sequence[str]) -> None:
        self.permissions = list(permissions)
        self.running = True
        self.debug = os.getenv("EXECUTOR_DEBUG", "false").lower() == "true"

        # Register signal handlers for graceful shutdown
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum: int, frame: object) -> None:
        """Handle shutdown signals gracefully."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.running = False

    async def process_request(self, request_data: dict) -> dict:
        """
        Process a single execution request.

        Args:
            request_data: Dictionary containing 'code' and optional 'language'

        Returns:
            Dictionary with execution results
        """
        code = request_data.get("code", "")
        language = request_data.get("language", Language.TYPESCRIPT.value)

        if language not in {lang.value for lang in Language}:
            return error_result(f"Unsupported language: {language}", "ValidationError")
        if not code:
            return error_result("No code provided", "ValidationError")
        if len(code.encode("utf-8")) > settings.max_code_size_bytes:
            return error_result(
                f"Code exceeds maximum size of {settings.max_code_size_bytes} bytes",
                "ValidationError",
            )

        logger.info(f"Executing {language} code (length={len(code)})")
        result = await execute(language, code, self.permissions)
        return asdict(result)

    async def run(self) -> None:
        """
        Read requests from stdin and write results to stdout until EOF.
        """
        logger.info("Starting executor in stdin mode")

        while self.running:
            try:
                line = await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)

                if not line:
                    break
                if not line.strip():
                    continue

                request_data = json.loads(line.strip())
                if not isinstance(request_data, dict):
                    raise json.JSONDecodeError("Expected a JSON object", line, 0)
                result = await self.process_request(request_data)

                print(json.dumps(result), flush=True)

            except json.JSONDecodeError as e:
                print(json.dumps(error_result(f"Invalid JSON: {e}", "ValidationError")), flush=True)

            except Exception as e:
                logger.error(f"Worker error: {e}")
                if self.debug:
                    raise
                print(json.dumps(error_result(str(e), "InternalError")), flush=True)


def error_result(message: str, error_type: str) -> dict:
    """Result payload for a request that never reached the sandbox."""
    return {
        "success": False,
        "output": "",
        "error": message,
        "error_type": error_type,
        "required_permission": None,
        "capability": None,
        "execution_time_ms": 0.0,
    }


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the executor worker."""
    configure_logging(settings.log_level)
    initialize_umask()

    permissions = list(sys.argv[1:] if argv is None else argv)
    permissions = permissions or settings.sandbox_permissions
    logger.info(f"Executor worker starting with permissions: {permissions or 'none'}")

    worker = ExecutorWorker(permissions)

    try:
        asyncio.run(worker.run())
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
    except Exception as e:
        logger.error(f"Worker crashed: {e}")
        return 1

    logger.info("Executor worker stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
