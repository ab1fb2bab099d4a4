"""
NetNinja network scanner.
Interface enumeration, primary-interface and VPN selection, listening ports,
neighbor peers and interface counters.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from config import COMMAND_TIMEOUT, SCAPY_AVAILABLE
from constants import (
    CMD_ADDRESSES,
    CMD_LINKS,
    CMD_LISTENING_SOCKETS,
    CMD_NEIGHBORS,
    LOOPBACK_INTERFACE,
    PROC_NET_DEV,
    SYS_CLASS_NET,
    VPN_NAME_PATTERNS,
    VPN_OPENVPN,
    VPN_UNKNOWN,
    VPN_WIREGUARD,
)
from models import InterfaceCounters, NetworkInterface, NetworkPeer, PortEntry, VpnStatus
from net_parsers import (
    parse_interface_records,
    parse_ip_addr_output,
    parse_neighbor_table,
    parse_port_table,
    parse_proc_net_dev,
)
from net_utils import is_primary_candidate_ip
from toolkit.utils import CommandRunner, ExecutionFailure

IFF_UP = 0x1


class InterfaceNotFound(LookupError):
    """No interface qualifies as primary."""


def select_primary_interface(interfaces: List[NetworkInterface]) -> NetworkInterface:
    """First up, non-loopback interface carrying a routable address."""
    for iface in interfaces:
        if iface.name == LOOPBACK_INTERFACE or not iface.ip_addresses or not iface.is_up:
            continue
        if any(is_primary_candidate_ip(ip) for ip in iface.ip_addresses):
            return iface
    raise InterfaceNotFound("No suitable network interface found")


def classify_vpn_type(name: str) -> str:
    if name.startswith("wg"):
        return VPN_WIREGUARD
    if name.startswith("tun") or name.startswith("tap"):
        return VPN_OPENVPN
    return VPN_UNKNOWN


def detect_vpn(interfaces: List[NetworkInterface]) -> VpnStatus:
    """Report the first up interface whose name looks like a VPN tunnel.

    Only one VPN is ever reported; later matches are ignored.
    """
    for iface in interfaces:
        if not iface.is_up:
            continue
        if any(pattern in iface.name for pattern in VPN_NAME_PATTERNS):
            return VpnStatus(
                is_connected=True,
                interface=iface.name,
                ip_address=iface.ip_addresses[0] if iface.ip_addresses else None,
                vpn_type=classify_vpn_type(iface.name),
            )
    return VpnStatus(is_connected=False)


class NetworkScanner:
    """Answers the network-side status queries."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        *,
        sys_class_net: str = SYS_CLASS_NET,
        proc_net_dev: str = PROC_NET_DEV,
    ):
        self.runner = runner or CommandRunner(timeout=COMMAND_TIMEOUT)
        self.sys_class_net = Path(sys_class_net)
        self.proc_net_dev = Path(proc_net_dev)

    def _is_up(self, name: str) -> bool:
        flags_path = self.sys_class_net / name / "flags"
        try:
            return bool(int(flags_path.read_text(encoding="utf-8").strip(), 16) & IFF_UP)
        except (OSError, ValueError):
            return False

    def _scapy_ifaces(self) -> List[Any]:
        from scapy.all import conf

        return list(conf.ifaces.values())

    def _scapy_records(self) -> List[Dict[str, Any]]:
        records = []
        ifaces = sorted(self._scapy_ifaces(), key=lambda i: int(getattr(i, "index", 0) or 0))
        for iface in ifaces:
            name = getattr(iface, "name", "") or ""
            ips_by_version = getattr(iface, "ips", None) or {}
            ips = list(ips_by_version.get(4, [])) + list(ips_by_version.get(6, []))
            if not ips and getattr(iface, "ip", None):
                ips = [iface.ip]
            records.append({
                "name": name,
                "ips": ips,
                "mac": getattr(iface, "mac", None),
                "is_up": self._is_up(name) if name else False,
            })
        return records

    def _ip_command_records(self) -> List[Dict[str, Any]]:
        addrs = self.runner.run(*CMD_ADDRESSES)
        if not addrs.ok:
            raise ExecutionFailure(CMD_ADDRESSES[0], f"exit status {addrs.returncode}")
        try:
            links = self.runner.run(*CMD_LINKS)
            link_text = links.stdout if links.ok else ""
        except ExecutionFailure:
            link_text = ""
        return parse_ip_addr_output(addrs.stdout, link_text)

    def get_interfaces(self) -> List[NetworkInterface]:
        """Enumerate interfaces via scapy, or `ip -o addr/link` without it."""
        if SCAPY_AVAILABLE:
            records = self._scapy_records()
        else:
            records = self._ip_command_records()
        return parse_interface_records(records)

    def get_primary_interface(self, interfaces: Optional[List[NetworkInterface]] = None) -> NetworkInterface:
        if interfaces is None:
            interfaces = self.get_interfaces()
        return select_primary_interface(interfaces)

    def get_vpn_status(self, interfaces: Optional[List[NetworkInterface]] = None) -> VpnStatus:
        if interfaces is None:
            interfaces = self.get_interfaces()
        return detect_vpn(interfaces)

    def get_open_ports(self) -> List[PortEntry]:
        result = self.runner.run(*CMD_LISTENING_SOCKETS)
        return parse_port_table(result.stdout)

    def get_network_peers(self) -> List[NetworkPeer]:
        result = self.runner.run(*CMD_NEIGHBORS)
        return parse_neighbor_table(result.stdout)

    def get_interface_counters(self) -> List[InterfaceCounters]:
        try:
            text = self.proc_net_dev.read_text(encoding="utf-8")
        except OSError as exc:
            raise ExecutionFailure(str(self.proc_net_dev), str(exc)) from exc
        return parse_proc_net_dev(text)
