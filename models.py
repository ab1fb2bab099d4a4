"""
NetNinja data models.
Dataclasses for interfaces, VPN state, ports, peers and security alerts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import total_ordering
from typing import Dict, List, Optional

from constants import DEFAULT_PORT_STATE, NEIGHBOR_STATE_UNKNOWN, UNKNOWN


@dataclass(frozen=True)
class NetworkInterface:
    """Snapshot of one network interface."""

    name: str
    ip_addresses: List[str] = field(default_factory=list)
    is_up: bool = False
    mac_address: Optional[str] = None


@dataclass(frozen=True)
class VpnStatus:
    is_connected: bool
    interface: Optional[str] = None
    ip_address: Optional[str] = None
    vpn_type: Optional[str] = None


@dataclass(frozen=True)
class PortEntry:
    """A listening socket from the socket table."""

    protocol: str
    port: int
    state: str = DEFAULT_PORT_STATE

    def __post_init__(self):
        if not 0 <= int(self.port) <= 0xFFFF:
            raise ValueError(f"Port out of range: {self.port}")


@dataclass(frozen=True)
class NetworkPeer:
    """A neighbor-table entry with a device guess."""

    ip: str
    interface: str
    mac: Optional[str] = None
    state: str = NEIGHBOR_STATE_UNKNOWN
    device_type: str = UNKNOWN
    os_guess: str = UNKNOWN


@dataclass(frozen=True)
class InterfaceCounters:
    name: str
    rx_bytes: int = 0
    rx_packets: int = 0
    tx_bytes: int = 0
    tx_packets: int = 0


@total_ordering
class AlertSeverity(Enum):
    """Alert priority tier, ordered Critical > High > Medium > Low > Info."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFO = "Info"

    @property
    def priority(self) -> int:
        return _SEVERITY_PRIORITY[self]

    def __str__(self) -> str:
        return self.name

    def __lt__(self, other):
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.priority < other.priority


_SEVERITY_PRIORITY = {
    AlertSeverity.CRITICAL: 5,
    AlertSeverity.HIGH: 4,
    AlertSeverity.MEDIUM: 3,
    AlertSeverity.LOW: 2,
    AlertSeverity.INFO: 1,
}


class AlertCategory(Enum):
    FAILED_LOGIN = "FailedLogin"
    PORT_SCAN = "PortScan"
    UNUSUAL_TRAFFIC = "UnusualTraffic"
    FIREWALL_BLOCK = "FirewallBlock"
    SUSPICIOUS_PROCESS = "SuspiciousProcess"
    SYSTEM_CHANGE = "SystemChange"


@dataclass(frozen=True)
class SecurityAlert:
    """Security alert. timestamp is capture time, not log-event time."""

    timestamp: datetime
    severity: AlertSeverity
    category: AlertCategory
    message: str
    details: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.severity, AlertSeverity):
            raise TypeError(f"Invalid severity: {self.severity!r}")
        if not isinstance(self.category, AlertCategory):
            raise TypeError(f"Invalid category: {self.category!r}")


@dataclass
class ScanOutcome:
    """Result of one security scan pass: alerts, or the source was unavailable."""

    source: str
    available: bool
    alerts: List[SecurityAlert] = field(default_factory=list)
    error: str = ""

    @classmethod
    def ok(cls, source: str, alerts: List[SecurityAlert]) -> "ScanOutcome":
        return cls(source=source, available=True, alerts=list(alerts))

    @classmethod
    def unavailable(cls, source: str, error: str) -> "ScanOutcome":
        return cls(source=source, available=False, alerts=[], error=error)


@dataclass
class SecuritySummary:
    firewall_active: bool
    alerts: List[SecurityAlert] = field(default_factory=list)
    outcomes: List[ScanOutcome] = field(default_factory=list)

    def count(self, severity: AlertSeverity) -> int:
        return sum(1 for a in self.alerts if a.severity is severity)

    def counts(self) -> Dict[str, int]:
        return {s.value: self.count(s) for s in AlertSeverity}

    @property
    def unavailable_sources(self) -> List[str]:
        return [o.source for o in self.outcomes if not o.available]

    def describe(self) -> str:
        return (
            f"Firewall: {'Active' if self.firewall_active else 'Inactive'}\n"
            f"Alerts - Critical: {self.count(AlertSeverity.CRITICAL)}, "
            f"High: {self.count(AlertSeverity.HIGH)}, "
            f"Medium: {self.count(AlertSeverity.MEDIUM)}"
        )
