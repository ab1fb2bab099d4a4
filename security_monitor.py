"""
NetNinja security monitor.
Classifies auth logs, connection tables and kernel logs into severity-tagged
alerts, and reports whether a host firewall is active.
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from config import AUTH_LOG_LINES, COMMAND_TIMEOUT, CONNECTION_THRESHOLD
from constants import (
    CMD_CONNECTIONS,
    CMD_IPTABLES_LIST,
    CMD_KERNEL_LOG,
    CMD_UFW_STATUS,
    FAILED_LOGIN_MARKERS,
    FIREWALL_LOG_MARKERS,
    UFW_ACTIVE_MARKER,
    auth_log_command,
)
from models import AlertCategory, AlertSeverity, ScanOutcome, SecurityAlert, SecuritySummary
from net_parsers import parse_connection_sources, recent_lines
from net_utils import is_loopback_ip
from toolkit.utils import CommandResult, CommandRunner, ExecutionFailure, utc_now

SOURCE_AUTH_LOG = "auth_log"
SOURCE_CONNECTIONS = "connections"
SOURCE_KERNEL_LOG = "kernel_log"


def classify_auth_lines(lines: Iterable[str], timestamp: datetime) -> List[SecurityAlert]:
    return [
        SecurityAlert(
            timestamp=timestamp,
            severity=AlertSeverity.MEDIUM,
            category=AlertCategory.FAILED_LOGIN,
            message="Failed SSH login attempt detected",
            details=line,
        )
        for line in lines
        if any(marker in line for marker in FAILED_LOGIN_MARKERS)
    ]


def classify_connection_sources(
    sources: Iterable[str],
    timestamp: datetime,
    threshold: int = CONNECTION_THRESHOLD,
) -> List[SecurityAlert]:
    """One alert per non-loopback address seen more than ``threshold`` times."""
    counts = Counter(ip for ip in sources if ip and not is_loopback_ip(ip))
    alerts = []
    for ip, count in counts.most_common():
        if count <= threshold:
            break
        alerts.append(
            SecurityAlert(
                timestamp=timestamp,
                severity=AlertSeverity.HIGH,
                category=AlertCategory.UNUSUAL_TRAFFIC,
                message=f"High connection count from {ip}: {count} connections",
                details="Possible port scan or DDoS attempt",
            )
        )
    return alerts


def classify_kernel_lines(lines: Iterable[str], timestamp: datetime) -> List[SecurityAlert]:
    return [
        SecurityAlert(
            timestamp=timestamp,
            severity=AlertSeverity.INFO,
            category=AlertCategory.FIREWALL_BLOCK,
            message="Firewall block detected",
            details=line,
        )
        for line in lines
        if any(marker in line for marker in FIREWALL_LOG_MARKERS)
    ]


class SecurityMonitor:
    """Runs the three security scan passes and the firewall check."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        connection_threshold: int = CONNECTION_THRESHOLD,
        auth_log_lines: int = AUTH_LOG_LINES,
    ):
        self.runner = runner or CommandRunner(timeout=COMMAND_TIMEOUT)
        self.clock = clock
        self.connection_threshold = int(connection_threshold)
        self.auth_log_lines = int(auth_log_lines)

    def _read(self, program: str, args: List[str]) -> CommandResult:
        result = self.runner.run(program, args)
        # e.g. dmesg without CAP_SYSLOG exits 1 with nothing on stdout
        if not result.ok and not result.stdout.strip():
            reason = result.stderr.strip().splitlines()[0] if result.stderr.strip() else f"exit status {result.returncode}"
            raise ExecutionFailure(program, reason)
        return result

    def check_failed_logins(self) -> ScanOutcome:
        program, args = auth_log_command(self.auth_log_lines)
        try:
            result = self._read(program, args)
        except ExecutionFailure as exc:
            return ScanOutcome.unavailable(SOURCE_AUTH_LOG, str(exc))
        lines = recent_lines(result.stdout, self.auth_log_lines)
        return ScanOutcome.ok(SOURCE_AUTH_LOG, classify_auth_lines(lines, self.clock()))

    def check_network_connections(self) -> ScanOutcome:
        try:
            result = self._read(*CMD_CONNECTIONS)
        except ExecutionFailure as exc:
            return ScanOutcome.unavailable(SOURCE_CONNECTIONS, str(exc))
        sources = parse_connection_sources(result.stdout)
        alerts = classify_connection_sources(sources, self.clock(), self.connection_threshold)
        return ScanOutcome.ok(SOURCE_CONNECTIONS, alerts)

    def check_firewall_logs(self) -> ScanOutcome:
        try:
            result = self._read(*CMD_KERNEL_LOG)
        except ExecutionFailure as exc:
            return ScanOutcome.unavailable(SOURCE_KERNEL_LOG, str(exc))
        return ScanOutcome.ok(SOURCE_KERNEL_LOG, classify_kernel_lines(result.stdout.splitlines(), self.clock()))

    def scan_outcomes(self) -> List[ScanOutcome]:
        return [
            self.check_failed_logins(),
            self.check_network_connections(),
            self.check_firewall_logs(),
        ]

    def scan_security_logs(self) -> List[SecurityAlert]:
        alerts: List[SecurityAlert] = []
        for outcome in self.scan_outcomes():
            alerts.extend(outcome.alerts)
        return alerts

    def check_firewall_status(self) -> bool:
        """Best effort: ufw status text, then iptables exit code, else False."""
        try:
            result = self.runner.run(*CMD_UFW_STATUS)
            return UFW_ACTIVE_MARKER in result.stdout
        except ExecutionFailure:
            pass
        try:
            return self.runner.run(*CMD_IPTABLES_LIST).ok
        except ExecutionFailure:
            return False

    def get_security_summary(self) -> SecuritySummary:
        outcomes = self.scan_outcomes()
        alerts = [a for o in outcomes for a in o.alerts]
        return SecuritySummary(
            firewall_active=self.check_firewall_status(),
            alerts=alerts,
            outcomes=outcomes,
        )
