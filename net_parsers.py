"""
NetNinja line parsers.
Pure functions turning raw command output into structured records.

Malformed lines are dropped where they are found; nothing here raises on
bad input.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from constants import DEFAULT_PORT_STATE, NEIGHBOR_STATE_UNKNOWN, NEIGHBOR_STATES
from models import InterfaceCounters, NetworkInterface, NetworkPeer, PortEntry
from net_utils import guess_device_from_mac

_MAC_RE = re.compile(r"^[0-9a-f]{2}(:[0-9a-f]{2}){5}$")


def normalize_ip(value: Any) -> Optional[str]:
    """Return the canonical form of an IPv4/IPv6 string, or None."""
    text = str(value or "").strip()
    if text.startswith("[") and "]" in text:
        text = text[1 : text.index("]")]
    text = text.split("%", 1)[0]
    if "/" in text:
        text = text.split("/", 1)[0]
    if not text:
        return None
    try:
        return str(ipaddress.ip_address(text))
    except ValueError:
        return None


def normalize_mac(value: Any) -> Optional[str]:
    text = str(value or "").strip().lower().replace("-", ":")
    if not _MAC_RE.match(text):
        return None
    return text


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

def parse_interface_records(records: Iterable[Mapping[str, Any]]) -> List[NetworkInterface]:
    """Build NetworkInterface snapshots from raw enumeration records.

    Each record may carry ``name``, ``ips``, ``mac`` and ``is_up``. Records
    without a name are excluded; everything else is kept with whatever data
    is present. Source order is preserved, and every parseable address is
    kept as reported, duplicates included.
    """
    interfaces: List[NetworkInterface] = []
    for rec in records:
        name = str(rec.get("name") or "").strip()
        if not name:
            continue
        ips: List[str] = []
        for raw in rec.get("ips") or []:
            ip = normalize_ip(raw)
            if ip:
                ips.append(ip)
        interfaces.append(
            NetworkInterface(
                name=name,
                ip_addresses=ips,
                is_up=bool(rec.get("is_up")),
                mac_address=normalize_mac(rec.get("mac")),
            )
        )
    return interfaces


def parse_ip_addr_output(addr_text: str, link_text: str = "") -> List[Dict[str, Any]]:
    """Turn ``ip -o addr show`` (+ ``ip -o link show``) output into records.

    Link lines look like ``2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> ... link/ether aa:bb:..``
    and address lines like ``2: eth0    inet 10.0.0.2/24 brd ...``.
    """
    records: Dict[str, Dict[str, Any]] = {}

    def _record(name: str) -> Dict[str, Any]:
        if name not in records:
            records[name] = {"name": name, "ips": [], "mac": None, "is_up": False}
        return records[name]

    for ln in (link_text or "").splitlines():
        parts = ln.split()
        if len(parts) < 3 or not parts[0].rstrip(":").isdigit():
            continue
        name = parts[1].rstrip(":").split("@", 1)[0]
        rec = _record(name)
        flags = parts[2].strip("<>").split(",")
        rec["is_up"] = "UP" in flags
        if "link/ether" in parts:
            idx = parts.index("link/ether")
            if idx + 1 < len(parts):
                rec["mac"] = parts[idx + 1]

    for ln in (addr_text or "").splitlines():
        parts = ln.split()
        if len(parts) < 4 or not parts[0].rstrip(":").isdigit():
            continue
        if parts[2] not in ("inet", "inet6"):
            continue
        rec = _record(parts[1].rstrip(":").split("@", 1)[0])
        rec["ips"].append(parts[3])
    return list(records.values())


def parse_proc_net_dev(text: str) -> List[InterfaceCounters]:
    """Parse /proc/net/dev into per-interface byte/packet counters."""
    counters: List[InterfaceCounters] = []
    for ln in (text or "").splitlines():
        if ":" not in ln:
            continue
        name, _, rest = ln.partition(":")
        name = name.strip()
        fields = rest.split()
        if not name or len(fields) < 10:
            continue
        try:
            counters.append(
                InterfaceCounters(
                    name=name,
                    rx_bytes=int(fields[0]),
                    rx_packets=int(fields[1]),
                    tx_bytes=int(fields[8]),
                    tx_packets=int(fields[9]),
                )
            )
        except ValueError:
            continue
    return counters


# ---------------------------------------------------------------------------
# Socket tables (ss)
# ---------------------------------------------------------------------------

def _parse_port(text: str) -> Optional[int]:
    if not text.isascii() or not text.isdigit():
        return None
    port = int(text)
    if port > 0xFFFF:
        return None
    return port


def parse_port_table(text: str) -> List[PortEntry]:
    """Parse ``ss -tuln`` output.

    Columns: ``Netid State Recv-Q Send-Q Local:Port Peer:Port``. The header
    line is skipped, as is any line with fewer than 5 fields or whose local
    address has no numeric port.
    """
    ports: List[PortEntry] = []
    for ln in (text or "").splitlines()[1:]:
        parts = ln.split()
        if len(parts) < 5:
            continue
        port = _parse_port(parts[4].rsplit(":", 1)[-1])
        if port is None:
            continue
        state = parts[1] if len(parts) > 5 else DEFAULT_PORT_STATE
        ports.append(PortEntry(protocol=parts[0], port=port, state=state))
    return ports


def strip_port(address: str) -> str:
    """``10.0.0.2:22`` -> ``10.0.0.2``; ``[::1]:22`` -> ``::1``."""
    addr = (address or "").strip()
    if addr.startswith("[") and "]" in addr:
        return addr[1 : addr.index("]")]
    if addr.count(":") == 1:
        return addr.split(":", 1)[0]
    if ":" in addr:
        # ss prints unbracketed v4-mapped / v6 addresses as addr:port
        head, _, tail = addr.rpartition(":")
        if tail.isdigit() or tail == "*":
            return head
    return addr


def parse_connection_sources(text: str) -> List[str]:
    """Addresses from column 4 of a connection table, port suffix removed.

    For ``ss -tan`` rows (``State Recv-Q Send-Q Local:Port Peer:Port``) column
    4 is the remote end. Rows with 4 or fewer fields and unparseable
    addresses are dropped.
    """
    sources: List[str] = []
    for ln in (text or "").splitlines()[1:]:
        parts = ln.split()
        if len(parts) <= 4:
            continue
        ip = normalize_ip(strip_port(parts[4]))
        if ip:
            sources.append(ip)
    return sources


# ---------------------------------------------------------------------------
# Neighbor table (ip neigh)
# ---------------------------------------------------------------------------

def parse_neighbor_line(line: str) -> Optional[NetworkPeer]:
    """Parse one ``<ip> dev <iface> [lladdr <mac>] <STATE>`` line."""
    parts = (line or "").split()
    if len(parts) < 4:
        return None
    ip = normalize_ip(parts[0])
    if ip is None:
        return None
    mac = None
    state = NEIGHBOR_STATE_UNKNOWN
    for i, token in enumerate(parts):
        if token == "lladdr" and i + 1 < len(parts):
            mac = parts[i + 1]
        if token in NEIGHBOR_STATES:
            state = token
    device_type, os_guess = guess_device_from_mac(mac)
    return NetworkPeer(
        ip=ip,
        interface=parts[2],
        mac=mac,
        state=state,
        device_type=device_type,
        os_guess=os_guess,
    )


def parse_neighbor_table(text: str) -> List[NetworkPeer]:
    peers: List[NetworkPeer] = []
    for ln in (text or "").splitlines():
        peer = parse_neighbor_line(ln)
        if peer is not None:
            peers.append(peer)
    return peers


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

def recent_lines(text: str, limit: int) -> List[str]:
    """The last ``limit`` non-empty lines of a log dump."""
    lines = [ln for ln in (text or "").splitlines() if ln.strip()]
    if limit <= 0:
        return []
    return lines[-limit:]
