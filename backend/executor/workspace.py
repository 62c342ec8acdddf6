"""Ephemeral per-invocation workspaces.

Each invocation gets its own owner-only directory holding the payload and
any generated driver scripts. The directory is removed on every exit path.
"""

import os
import shutil
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from common.config import settings
from common.logging import get_logger
from executor.errors import ProcessStartFailure

logger = get_logger(__name__)

PRIVATE_UMASK = 0o077
PRIVATE_FILE_MODE = 0o600

_umask_lock = threading.Lock()
_umask_initialized = False


def initialize_umask() -> bool:
    """Restrict the process file-creation mask to owner-only, once.

    Returns True if this call changed the mask, False if it was already set.
    """
    global _umask_initialized
    with _umask_lock:
        if _umask_initialized:
            return False
        os.umask(PRIVATE_UMASK)
        _umask_initialized = True
        logger.debug(f"File creation mask set to {PRIVATE_UMASK:04o}")
        return True


@dataclass(frozen=True)
class Workspace:
    """A directory exclusively owned by one invocation."""

    root: str

    def path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def write_file(self, name: str, content: str) -> str:
        """Create ``name`` inside the workspace, readable by the owner only.

        Raises:
            ProcessStartFailure: If the file cannot be written.
        """
        path = self.path(name)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, PRIVATE_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
        except OSError as e:
            raise ProcessStartFailure(f"Failed to write {name}: {e}") from e
        return path


def remove_workspace(root: str) -> None:
    """Delete a workspace tree, logging instead of raising on failure."""
    try:
        shutil.rmtree(root)
    except OSError as e:
        logger.warning(f"Failed to remove temporary directory: {root} ({e})")


@contextmanager
def open_workspace(prefix: str | None = None) -> Iterator[Workspace]:
    """Create a fresh workspace and remove it when the block exits.

    Raises:
        ProcessStartFailure: If the directory cannot be created.
    """
    initialize_umask()
    try:
        # mkdtemp creates the directory with mode 0700 and a unique name
        root = tempfile.mkdtemp(prefix=prefix or settings.workspace_prefix)
    except OSError as e:
        raise ProcessStartFailure(f"Failed to create workspace: {e}") from e

    try:
        yield Workspace(root=os.path.realpath(root))
    finally:
        remove_workspace(root)
