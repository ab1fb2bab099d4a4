"""
NetNinja constants.
OUI fingerprint table, VPN name patterns, log markers and command lines.
"""

from typing import Dict, List, Tuple

UNKNOWN = "Unknown"
UNKNOWN_FINGERPRINT: Tuple[str, str] = (UNKNOWN, UNKNOWN)

# Lowercase OUI prefix -> (device type, vendor/OS guess). Exact match only.
FINGERPRINTS: Dict[str, Tuple[str, str]] = {
    "00:50:56": ("Virtual Machine", "VMware"),
    "00:0c:29": ("Virtual Machine", "VMware"),
    "00:05:69": ("Virtual Machine", "VMware"),
    "08:00:27": ("Virtual Machine", "VirtualBox"),
    "00:15:5d": ("Virtual Machine", "Microsoft Hyper-V"),
    "52:54:00": ("Virtual Machine", "QEMU/KVM"),
    "b8:27:eb": ("IoT Device", "Raspberry Pi"),
    "dc:a6:32": ("IoT Device", "Raspberry Pi"),
    "e4:5f:01": ("IoT Device", "Raspberry Pi"),
    "00:1b:63": ("Computer", "Apple"),
    "00:03:93": ("Computer", "Apple"),
    "00:0a:95": ("Computer", "Apple"),
    "28:cf:da": ("Computer", "Apple"),
    "a4:5e:60": ("Computer", "Apple"),
    "00:17:88": ("IoT Device", "Philips Hue"),
    "18:b4:30": ("IoT Device", "Nest Labs"),
}

LOOPBACK_INTERFACE = "lo"

VPN_NAME_PATTERNS: List[str] = ["tun", "tap", "wg", "ppp", "vpn"]
VPN_WIREGUARD = "WireGuard"
VPN_OPENVPN = "OpenVPN/Generic"
VPN_UNKNOWN = "Unknown"

NEIGHBOR_STATES = ("REACHABLE", "STALE", "DELAY")
NEIGHBOR_STATE_UNKNOWN = "UNKNOWN"
DEFAULT_PORT_STATE = "LISTEN"

FAILED_LOGIN_MARKERS = ("Failed password", "Invalid user")
FIREWALL_LOG_MARKERS = ("UFW BLOCK", "iptables")
UFW_ACTIVE_MARKER = "Status: active"

# program, args
CMD_LISTENING_SOCKETS = ("ss", ["-tuln"])
CMD_CONNECTIONS = ("ss", ["-tan"])
CMD_NEIGHBORS = ("ip", ["neigh", "show"])
CMD_ADDRESSES = ("ip", ["-o", "addr", "show"])
CMD_LINKS = ("ip", ["-o", "link", "show"])
CMD_KERNEL_LOG = ("dmesg", ["-T", "--level=warn,err"])
CMD_UFW_STATUS = ("ufw", ["status"])
CMD_IPTABLES_LIST = ("iptables", ["-L", "-n"])


def auth_log_command(lines: int) -> Tuple[str, List[str]]:
    return ("journalctl", ["-u", "ssh", "-n", str(int(lines)), "--no-pager"])


PROC_NET_DEV = "/proc/net/dev"
SYS_CLASS_NET = "/sys/class/net"
