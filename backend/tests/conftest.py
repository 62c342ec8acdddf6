"""Pytest configuration and fixtures.

This module sets up test environment variables BEFORE any application
modules are imported, ensuring Settings pick up test values.
"""

import asyncio
import os

# Set test environment variables before any imports that might trigger Settings
os.environ.setdefault("APP_NAME", "deno-sandbox-test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("HOST", "127.0.0.1")
os.environ.setdefault("PORT", "8000")
os.environ.setdefault("CORS_ORIGINS", '["http://localhost:3000"]')
os.environ.setdefault("MAX_CODE_SIZE_BYTES", "10240")
os.environ.setdefault("DENO_EXECUTABLE", "deno")
os.environ.setdefault("PACKAGE_HOST", "cdn.jsdelivr.net")
os.environ.setdefault("WORKSPACE_PREFIX", "deno-sandbox-test-")
os.environ.setdefault("SANDBOX_PERMISSIONS", "[]")

from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient


@dataclass
class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    returncode: int = 0
    stdout: bytes = b""
    stderr: bytes = b""
    killed: bool = False
    waited: bool = False
    cancelled: bool = False

    async def communicate(self) -> tuple[bytes, bytes]:
        if self.cancelled:
            raise asyncio.CancelledError
        return self.stdout, self.stderr

    def kill(self) -> None:
        self.killed = True

    async def wait(self) -> int:
        self.waited = True
        return self.returncode


@dataclass
class DenoCall:
    """One recorded Deno invocation."""

    cmd: list[str]
    cwd: str
    files: dict[str, str]

    @property
    def args(self) -> list[str]:
        """Arguments after ``deno run``."""
        return self.cmd[2:]


@dataclass
class FakeDeno:
    """Records Deno invocations and replays queued outcomes."""

    calls: list[DenoCall] = field(default_factory=list)
    outcomes: list[FakeProcess | BaseException] = field(default_factory=list)

    def queue(self, *outcomes: FakeProcess | BaseException) -> None:
        self.outcomes.extend(outcomes)

    @staticmethod
    def process(
        returncode: int = 0,
        stdout: bytes = b"",
        stderr: bytes = b"",
        cancelled: bool = False,
    ) -> FakeProcess:
        return FakeProcess(
            returncode=returncode, stdout=stdout, stderr=stderr, cancelled=cancelled
        )

    async def create_subprocess_exec(self, *cmd, **kwargs):
        cwd = kwargs["cwd"]
        files = {}
        for name in os.listdir(cwd):
            path = os.path.join(cwd, name)
            if os.path.isfile(path):
                with open(path, encoding="utf-8") as handle:
                    files[name] = handle.read()
        self.calls.append(DenoCall(cmd=list(cmd), cwd=cwd, files=files))

        outcome = self.outcomes.pop(0) if self.outcomes else FakeProcess()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_deno(monkeypatch):
    """Replace subprocess creation so no real Deno binary is needed."""
    deno = FakeDeno()
    monkeypatch.setattr("asyncio.create_subprocess_exec", deno.create_subprocess_exec)
    return deno


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    # Import here to ensure env vars are set first
    from api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_env_vars():
    """Fixture providing standard test environment variables."""
    return {
        "APP_NAME": "deno-sandbox-test",
        "DEBUG": "false",
        "ENVIRONMENT": "testing",
        "HOST": "127.0.0.1",
        "PORT": "8000",
        "CORS_ORIGINS": '["http://localhost:3000"]',
        "MAX_CODE_SIZE_BYTES": "10240",
        "DENO_EXECUTABLE": "deno",
        "PACKAGE_HOST": "cdn.jsdelivr.net",
        "SANDBOX_PERMISSIONS": "[]",
    }
