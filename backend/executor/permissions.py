"""Deno permission flag parsing.

Only read and write grants are interpreted here; every other flag is
forwarded to Deno untouched.
"""

import os
import re
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

# Short aliases accepted by `deno run`
SHORT_FLAGS: dict[str, str] = {
    "-R": "read",
    "-W": "write",
    "-N": "net",
    "-E": "env",
    "-I": "import",
}

# Kinds whose scopes are filesystem paths
PATH_KINDS = ("read", "write")

SUPPORTED_FLAGS = """Supported Deno permissions:
--allow-read[=<PATH>...] or -R[=<PATH>...]
--deny-read[=<PATH>...]
--allow-write[=<PATH>...] or -W[=<PATH>...]
--deny-write[=<PATH>...]
--allow-net[=<IP_OR_HOSTNAME>...] or -N[=<IP_OR_HOSTNAME>...]
--deny-net[=<IP_OR_HOSTNAME>...]
--allow-import[=<HOSTNAME>...]
--allow-env[=<VARIABLE_NAME>...] or -E[=<VARIABLE_NAME>...]
--deny-env[=<VARIABLE_NAME>...]"""

_LONG_FLAG = re.compile(r"^--(allow|deny)-([a-z]+)$")


@dataclass(frozen=True)
class Grant:
    """A single parsed permission flag."""

    flag: str
    kind: str
    deny: bool = False
    scopes: tuple[str, ...] | None = None  # None means unscoped

    @property
    def unscoped(self) -> bool:
        return self.scopes is None


def parse_grant(flag: str) -> Grant:
    """Parse a flag such as ``--allow-read=/a,/b`` or ``-W``.

    Flags that are not permission flags are returned with kind ``"other"``.
    """
    name, sep, value = flag.partition("=")
    scopes = tuple(s for s in value.split(",") if s) if sep else None

    if name in SHORT_FLAGS:
        return Grant(flag=flag, kind=SHORT_FLAGS[name], scopes=scopes)

    match = _LONG_FLAG.match(name)
    if not match:
        return Grant(flag=flag, kind="other", scopes=scopes)

    action, kind = match.groups()
    if kind == "imports":
        kind = "import"
    return Grant(flag=flag, kind=kind, deny=action == "deny", scopes=scopes)


def parse_grants(flags: Iterable[str]) -> list[Grant]:
    """Parse a list of flags, preserving order."""
    return [parse_grant(flag) for flag in flags]


def unscoped_approximation() -> list[str]:
    """Paths that stand in for an unscoped read or write grant.

    An unscoped grant gives Deno access to the whole filesystem, but only the
    home directory and the temporary directory are mounted for Python code.
    """
    return [os.path.expanduser("~"), tempfile.gettempdir()]


def granted_paths(flags: Iterable[str], kinds: Sequence[str] = PATH_KINDS) -> list[str]:
    """Absolute paths covered by the allow grants of the given kinds.

    Relative scopes are resolved against the current working directory.
    Deny grants never contribute. Order is first-seen, without duplicates.
    """
    paths: list[str] = []
    for grant in parse_grants(flags):
        if grant.deny or grant.kind not in kinds:
            continue
        if grant.unscoped:
            candidates = unscoped_approximation()
        else:
            candidates = [os.path.abspath(scope) for scope in grant.scopes]
        for path in candidates:
            if path not in paths:
                paths.append(path)
    return paths


def _absolute_scopes(scopes: Iterable[str]) -> list[str]:
    return [os.path.abspath(scope) for scope in scopes]


def with_workspace_read(flags: Sequence[str], workspace_root: str) -> list[str]:
    """Caller flags plus one implicit read grant on the workspace.

    All allow-read forms are merged into a single flag so that a later
    ``--allow-read=<workspace>`` cannot narrow an earlier unscoped grant.
    The merged flag takes the position of the first read grant.

    Read and write scopes are made absolute against the current working
    directory, matching ``granted_paths``; Deno itself runs inside the
    workspace and would otherwise resolve them there. Deny forms are
    forwarded untouched.
    """
    result: list[str] = []
    read_scopes: list[str] = []
    read_unscoped = False
    insert_at: int | None = None

    for flag in flags:
        grant = parse_grant(flag)
        if grant.deny or grant.kind not in PATH_KINDS:
            result.append(flag)
            continue
        if grant.kind == "write":
            if grant.unscoped:
                result.append(flag)
            else:
                name = flag.partition("=")[0]
                result.append(f"{name}=" + ",".join(_absolute_scopes(grant.scopes)))
            continue
        if insert_at is None:
            insert_at = len(result)
        if grant.unscoped:
            read_unscoped = True
        else:
            read_scopes.extend(
                s for s in _absolute_scopes(grant.scopes) if s not in read_scopes
            )

    if read_unscoped:
        merged = "--allow-read"
    else:
        if workspace_root not in read_scopes:
            read_scopes.append(workspace_root)
        merged = "--allow-read=" + ",".join(read_scopes)

    result.insert(len(result) if insert_at is None else insert_at, merged)
    return result
