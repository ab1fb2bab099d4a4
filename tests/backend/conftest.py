from datetime import datetime, timezone

import pytest

from net_scanner import NetworkScanner
from security_monitor import SecurityMonitor
from toolkit.utils import CommandResult, CommandRunner, ExecutionFailure, current_scope

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeRunner(CommandRunner):
    """Command runner stub keyed by program name; never spawns processes.

    Keys are a full command line ("ip neigh show") or a bare program name.
    Values are CommandResult instances, plain stdout strings, exceptions to
    raise, or callables producing one of those. Programs without an entry
    behave as missing binaries. A cancelled scope is honoured the way the
    real runner does: the call is refused and listed in ``rejected``.
    """

    def __init__(self, outputs=None):
        super().__init__(timeout=1)
        self.outputs = dict(outputs or {})
        self.calls = []
        self.rejected = []

    def run(self, program, args=(), *, timeout=None):
        scope = current_scope()
        if scope is not None and scope.cancelled:
            self.rejected.append(program)
            scope.check(program)
        self.calls.append((program, list(args)))
        value = self.outputs.get(" ".join([program, *args]), self.outputs.get(program))
        if callable(value):
            value = value()
        if value is None:
            raise ExecutionFailure(program, "command not found")
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, str):
            return CommandResult(stdout=value, returncode=0)
        return value


@pytest.fixture()
def fake_runner():
    return FakeRunner()


@pytest.fixture()
def scanner_factory(tmp_path):
    """Scanner bound to a fake runner and a temp sysfs/procfs."""

    def make(outputs=None, proc_net_dev_text=None):
        runner = FakeRunner(outputs)
        proc = tmp_path / "net_dev"
        if proc_net_dev_text is not None:
            proc.write_text(proc_net_dev_text, encoding="utf-8")
        return NetworkScanner(runner, sys_class_net=str(tmp_path / "sys"), proc_net_dev=str(proc))

    return make


@pytest.fixture()
def monitor_factory():
    def make(outputs=None, **kwargs):
        return SecurityMonitor(FakeRunner(outputs), clock=lambda: FIXED_NOW, **kwargs)

    return make


@pytest.fixture()
def client_ctx(monkeypatch):
    """
    Flask test client with isolated backend globals.
    Prevents command execution by routing every query through a FakeRunner.
    """
    import server
    from services.status_daemon import StatusDaemon

    runner = FakeRunner()
    scanner = NetworkScanner(runner)
    monitor = SecurityMonitor(runner, clock=lambda: FIXED_NOW)
    published = []
    daemon = StatusDaemon(scanner, monitor, published.append, interval_seconds=60)

    monkeypatch.setattr(server, "scanner", scanner)
    monkeypatch.setattr(server, "monitor", monitor)
    monkeypatch.setattr(server, "status_daemon", daemon)
    monkeypatch.setattr(server, "SCAPY_AVAILABLE", False)
    monkeypatch.setattr(server, "API_KEY", "", raising=False)

    return {
        "client": server.app.test_client(),
        "runner": runner,
        "scanner": scanner,
        "monitor": monitor,
        "daemon": daemon,
        "published": published,
    }
