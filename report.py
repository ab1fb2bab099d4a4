"""
NetNinja status report.
Collects every status section concurrently and renders the one-shot report.
A failing section carries its own error and never hides the others.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from models import AlertSeverity, SecurityAlert
from net_scanner import NetworkScanner
from security_monitor import SecurityMonitor
from toolkit.utils import CancelScope, cancel_scope, safe_json, utc_now_iso

SECTIONS = ("primary_interface", "vpn", "ports", "peers", "security", "firewall")

RULE = "═" * 59
THIN_RULE = "─" * 59
MAX_PORTS_SHOWN = 15
MAX_PEERS_SHOWN = 10
MAX_ALERTS_SHOWN = 5


@dataclass
class SectionResult:
    name: str
    data: Any = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


@dataclass
class StatusReport:
    generated_at: str
    sections: Dict[str, SectionResult]

    def section(self, name: str) -> SectionResult:
        return self.sections[name]


def _section_calls(scanner: NetworkScanner, monitor: SecurityMonitor) -> Dict[str, Callable[[], Any]]:
    return {
        "primary_interface": scanner.get_primary_interface,
        "vpn": scanner.get_vpn_status,
        "ports": scanner.get_open_ports,
        "peers": scanner.get_network_peers,
        "security": monitor.get_security_summary,
        "firewall": monitor.check_firewall_status,
    }


def _run_section(name: str, fn: Callable[[], Any], scope: CancelScope) -> SectionResult:
    try:
        with cancel_scope(scope):
            return SectionResult(name=name, data=fn())
    except Exception as exc:
        return SectionResult(name=name, error=str(exc) or exc.__class__.__name__)


def collect_report(
    scanner: NetworkScanner,
    monitor: SecurityMonitor,
    *,
    max_workers: int = 4,
    timeout: Optional[float] = None,
    scope: Optional[CancelScope] = None,
) -> StatusReport:
    """Run all sections in parallel under one cancellation scope.

    When the timeout expires or the caller is interrupted, the scope is
    cancelled: this report's in-flight commands are killed and its
    straggling sections cannot start new ones. Concurrent callers sharing
    the same runner are unaffected.
    """
    scope = scope or CancelScope()
    calls = _section_calls(scanner, monitor)
    results: Dict[str, SectionResult] = {}
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=max(1, int(max_workers)))
    futures = {pool.submit(_run_section, name, fn, scope): name for name, fn in calls.items()}
    try:
        done, pending = concurrent.futures.wait(futures, timeout=timeout)
        for fut in done:
            res = fut.result()
            results[res.name] = res
        for fut in pending:
            fut.cancel()
            name = futures[fut]
            results[name] = SectionResult(name=name, error="timed out")
        if pending:
            scope.cancel()
    except BaseException:
        for fut in futures:
            fut.cancel()
        scope.cancel()
        raise
    finally:
        pool.shutdown(wait=False)
    ordered = {name: results[name] for name in SECTIONS}
    return StatusReport(generated_at=utc_now_iso(), sections=ordered)


def report_as_dict(report: StatusReport) -> Dict[str, Any]:
    out: Dict[str, Any] = {"generated_at": report.generated_at, "sections": {}}
    for name, res in report.sections.items():
        entry: Dict[str, Any] = {"ok": res.ok}
        if res.ok:
            data = res.data
            entry["data"] = safe_json(data)
            if name == "security":
                entry["data"]["counts"] = data.counts()
                entry["data"]["unavailable_sources"] = data.unavailable_sources
        else:
            entry["error"] = res.error
        out["sections"][name] = entry
    return out


def _error_line(res: SectionResult) -> List[str]:
    return [f"⚠️  Error: {res.error}"]


def _render_interface(res: SectionResult) -> List[str]:
    lines = ["📡 NETWORK INTERFACES", THIN_RULE]
    if not res.ok:
        return lines + _error_line(res)
    iface = res.data
    lines.append(f"Primary Interface: {iface.name}")
    lines.append(f"Status: {'🟢 UP' if iface.is_up else '🔴 DOWN'}")
    if iface.mac_address:
        lines.append(f"MAC Address: {iface.mac_address}")
    lines.append("IP Addresses:")
    lines.extend(f"  • {ip}" for ip in iface.ip_addresses)
    return lines


def _render_vpn(res: SectionResult) -> List[str]:
    lines = ["🔒 VPN STATUS", THIN_RULE]
    if not res.ok:
        return lines + _error_line(res)
    vpn = res.data
    if not vpn.is_connected:
        return lines + ["Status: 🔴 NOT CONNECTED"]
    lines.append("Status: 🟢 CONNECTED")
    if vpn.interface:
        lines.append(f"Interface: {vpn.interface}")
    if vpn.ip_address:
        lines.append(f"VPN IP: {vpn.ip_address}")
    if vpn.vpn_type:
        lines.append(f"Type: {vpn.vpn_type}")
    return lines


def _render_ports(res: SectionResult) -> List[str]:
    lines = ["🔓 OPEN PORTS", THIN_RULE]
    if not res.ok:
        return lines + _error_line(res)
    ports = res.data
    if not ports:
        return lines + ["No listening ports detected"]
    lines.append(f"{'Protocol':<10} {'Port':<10} {'State':<15}")
    lines.append("─" * 35)
    for entry in ports[:MAX_PORTS_SHOWN]:
        lines.append(f"{entry.protocol:<10} {entry.port:<10} {entry.state:<15}")
    if len(ports) > MAX_PORTS_SHOWN:
        lines.append(f"... and {len(ports) - MAX_PORTS_SHOWN} more")
    return lines


def _render_peers(res: SectionResult) -> List[str]:
    lines = ["👥 NETWORK PEERS", THIN_RULE]
    if not res.ok:
        return lines + _error_line(res)
    peers = res.data
    if not peers:
        return lines + ["No active network peers detected"]
    lines.append(f"{'IP Address':<20} {'MAC Address':<20} {'Device Type':<15} {'State':<10}")
    lines.append("─" * 65)
    for peer in peers[:MAX_PEERS_SHOWN]:
        lines.append(f"{peer.ip:<20} {peer.mac or 'N/A':<20} {peer.device_type:<15} {peer.state:<10}")
    if len(peers) > MAX_PEERS_SHOWN:
        lines.append(f"... and {len(peers) - MAX_PEERS_SHOWN} more")
    return lines


def _format_alert(alert: SecurityAlert) -> str:
    return f"  [{alert.severity}] {alert.timestamp.strftime('%Y-%m-%d %H:%M:%S')}: {alert.message}"


def _render_security(res: SectionResult, firewall: SectionResult) -> List[str]:
    lines = ["🛡️  SECURITY STATUS", THIN_RULE]
    if not res.ok:
        lines.append(f"⚠️  Error scanning security logs: {res.error}")
    else:
        summary = res.data
        badges = [
            (AlertSeverity.CRITICAL, "🔴 Critical"),
            (AlertSeverity.HIGH, "🟠 High"),
            (AlertSeverity.MEDIUM, "🟡 Medium"),
            (AlertSeverity.LOW, "🟢 Low"),
        ]
        lines.append("Alert Summary:")
        shown = 0
        for severity, label in badges:
            n = summary.count(severity)
            if n:
                lines.append(f"  {label}: {n}")
                shown += n
        if not shown:
            lines.append("  ✅ No alerts detected")
        for source in summary.unavailable_sources:
            lines.append(f"  ⚠️  Source unavailable: {source}")
        if summary.alerts:
            lines.append("")
            lines.append("Recent Alerts:")
            ranked = sorted(summary.alerts, key=lambda a: a.severity, reverse=True)
            lines.extend(_format_alert(a) for a in ranked[:MAX_ALERTS_SHOWN])
    lines.append("")
    if firewall.ok:
        lines.append(f"Firewall: {'🟢 Active' if firewall.data else '🔴 Inactive'}")
    else:
        lines.append("Firewall: ⚠️  Status unknown")
    return lines


def render_report(report: StatusReport) -> str:
    s = report.sections
    lines = [
        RULE,
        "              🥷  NetNinja Status Report  🥷              ",
        RULE,
        "",
    ]
    for block in (
        _render_interface(s["primary_interface"]),
        _render_vpn(s["vpn"]),
        _render_ports(s["ports"]),
        _render_peers(s["peers"]),
        _render_security(s["security"], s["firewall"]),
    ):
        lines.extend(block)
        lines.append("")
    lines.append(RULE)
    lines.append("")
    lines.append("💡 Tip: Run 'netninja serve' for the live monitoring dashboard")
    return "\n".join(lines) + "\n"
