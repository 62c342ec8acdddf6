"""Classification of Deno subprocess failures.

Raw diagnostics are matched against an ordered list of rules; the first
rule whose extractor produces a failure wins. Anything unmatched is
passed through unchanged as an opaque failure.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

# Prefix of the diagnostic the orchestrator builds for a non-zero exit
EXIT_MARKER = "Deno process exited with code"
CAPABILITY_MARKER = "NotCapable"
PYTHON_ERROR_MARKER = "PythonError"


class ExecutionFailure(Exception):
    """Base class for every classified failure."""

    kind = "ExecutionFailure"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return self.detail


class CapabilityDenied(ExecutionFailure):
    """Deno refused an operation the granted permissions do not cover."""

    kind = "CapabilityDenied"

    def __init__(self, permission: str, flag: str, capability: str | None = None):
        self.permission = permission
        self.flag = flag
        self.capability = capability
        detail = (
            "The sandbox does not have sufficient permissions to run this code.\n"
            f"Required permission: {permission}\n"
            f"The server needs to be restarted with {flag} to run this code."
        )
        if "=" in flag:
            base = flag.split("=", 1)[0]
            detail += (
                "\nNote: You need access to a specific path. Either grant access to "
                f"this exact path or use {base} without a path argument to grant "
                "broader access."
            )
        super().__init__(detail)


class ScriptFault(ExecutionFailure):
    """The payload itself failed (syntax error, uncaught exception...)."""

    kind = "ScriptFault"


class ProcessStartFailure(ExecutionFailure):
    """The workspace or the Deno process could not be set up."""

    kind = "ProcessStartFailure"


class Opaque(ExecutionFailure):
    """A diagnostic no rule recognised."""

    kind = "Opaque"


@dataclass(frozen=True)
class Rule:
    """A classifier rule: cheap substring marker plus an extractor."""

    name: str
    marker: str
    extract: Callable[[str], ExecutionFailure | None]


_NOT_CAPABLE = re.compile(r"NotCapable: ([^\n]+)")
_FLAG = re.compile(r"(--allow-([a-z]+)(?:=[^\s]+)?)")
_REQUIRES = re.compile(r"Requires ([a-z]+) access")
_ERROR_LINE = re.compile(r"error: ([^\n]+)")
_EXCEPTION_LINE = re.compile(r"^[A-Za-z_][\w.]*(?:Error|Exception|Exit|Interrupt|Warning)\b.*$")


def _capability_denied(raw: str) -> ExecutionFailure | None:
    match = _NOT_CAPABLE.search(raw)
    if not match:
        return None
    permission = match.group(1).strip()
    flag_match = _FLAG.search(permission)
    if flag_match:
        flag, capability = flag_match.groups()
    else:
        flag = "specific permissions"
        requires = _REQUIRES.search(permission)
        capability = requires.group(1) if requires else None
    return CapabilityDenied(permission, flag, capability)


def _python_traceback(raw: str) -> ExecutionFailure | None:
    if EXIT_MARKER not in raw:
        return None
    _, _, traceback = raw.partition("Traceback (most recent call last):")
    if not traceback:
        return None
    # The traceback ends where the JavaScript stack of the driver begins
    last = None
    for line in traceback.splitlines():
        if line.lstrip().startswith("at "):
            break
        if _EXCEPTION_LINE.match(line):
            last = line.strip()
    return ScriptFault(last) if last else None


def _script_fault(raw: str) -> ExecutionFailure | None:
    match = _ERROR_LINE.search(raw)
    return ScriptFault(match.group(1).strip()) if match else None


CLASSIFIER_RULES: list[Rule] = [
    Rule("capability-denied", CAPABILITY_MARKER, _capability_denied),
    Rule("python-traceback", PYTHON_ERROR_MARKER, _python_traceback),
    Rule("script-fault", EXIT_MARKER, _script_fault),
]


def classify(raw: str, rules: list[Rule] | None = None) -> ExecutionFailure:
    """Map a raw diagnostic to the first matching failure type."""
    for rule in CLASSIFIER_RULES if rules is None else rules:
        if rule.marker not in raw:
            continue
        failure = rule.extract(raw)
        if failure is not None:
            return failure
    return Opaque(raw)


def exit_diagnostic(returncode: int | None, stderr: str) -> str:
    """Raw diagnostic text for a Deno process that exited unsuccessfully."""
    return f"{EXIT_MARKER} {returncode}\n{stderr}"
