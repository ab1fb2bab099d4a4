#!/usr/bin/env python3
"""Common helpers for NetNinja: command execution, clock and JSON shaping."""

from __future__ import annotations

import contextvars
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, Optional, Sequence, Set


class ExecutionFailure(RuntimeError):
    """An external program could not be run to completion."""

    def __init__(self, program: str, reason: str):
        super().__init__(f"{program}: {reason}")
        self.program = program
        self.reason = reason


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CancelScope:
    """Cancellation handle for the commands of one report.

    Processes started while the scope is active are registered here, so
    cancel() kills exactly those and refuses any later spawn. Commands run
    under other scopes, or none, are left alone.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._procs: Set[subprocess.Popen] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def check(self, program: str) -> None:
        if self._cancelled.is_set():
            raise ExecutionFailure(program, "cancelled")

    def attach(self, proc: subprocess.Popen) -> bool:
        with self._lock:
            if self._cancelled.is_set():
                return False
            self._procs.add(proc)
            return True

    def detach(self, proc: subprocess.Popen) -> None:
        with self._lock:
            self._procs.discard(proc)

    def active_count(self) -> int:
        with self._lock:
            return len(self._procs)

    def cancel(self) -> int:
        """Stop the scope. Returns how many live processes were killed."""
        with self._lock:
            self._cancelled.set()
            procs = list(self._procs)
        killed = 0
        for proc in procs:
            if proc.poll() is None:
                proc.kill()
                killed += 1
        return killed


_current_scope: contextvars.ContextVar[Optional[CancelScope]] = contextvars.ContextVar(
    "netninja_cancel_scope", default=None
)


def current_scope() -> Optional[CancelScope]:
    return _current_scope.get()


@contextmanager
def cancel_scope(scope: CancelScope) -> Iterator[CancelScope]:
    """Bind ``scope`` to commands run by the current thread."""
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)


class CommandRunner:
    """Runs external programs without a shell, with a per-invocation timeout.

    A runner holds no per-request state and is safe to share. Cancellation
    belongs to the CancelScope bound by the caller, if any.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = max(0.1, float(timeout))

    def run(self, program: str, args: Sequence[str] = (), *, timeout: Optional[float] = None) -> CommandResult:
        cmd = [program, *[str(a) for a in args]]
        limit = self.timeout if timeout is None else max(0.1, float(timeout))
        scope = current_scope()
        if scope is not None:
            scope.check(program)
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise ExecutionFailure(program, "command not found") from exc
        except PermissionError as exc:
            raise ExecutionFailure(program, "permission denied") from exc
        except OSError as exc:
            raise ExecutionFailure(program, str(exc)) from exc

        if scope is not None and not scope.attach(proc):
            proc.kill()
            proc.communicate()
            raise ExecutionFailure(program, "cancelled")
        try:
            stdout, stderr = proc.communicate(timeout=limit)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            raise ExecutionFailure(program, f"timed out after {limit:g}s") from exc
        finally:
            if scope is not None:
                scope.detach(proc)
        if scope is not None and scope.cancelled:
            raise ExecutionFailure(program, "cancelled")
        if proc.returncode is not None and proc.returncode < 0:
            raise ExecutionFailure(program, f"terminated by signal {-proc.returncode}")
        return CommandResult(stdout=stdout or "", returncode=int(proc.returncode), stderr=stderr or "")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def safe_json(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return safe_json(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): safe_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [safe_json(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
