"""
NetNinja network utilities.
OUI-based device fingerprinting and IP address classification.
"""

import ipaddress
from typing import Optional, Tuple

from constants import FINGERPRINTS, UNKNOWN_FINGERPRINT


def oui_prefix(mac: Optional[str]) -> str:
    """First three colon-separated octets, lowercased ('' when missing)."""
    if not mac:
        return ""
    return ":".join(mac.strip().split(":")[:3]).lower()


def guess_device_from_mac(mac: Optional[str]) -> Tuple[str, str]:
    """Guess (device type, vendor/OS) from a hardware address prefix.

    Exact three-octet match against FINGERPRINTS; anything else, including a
    missing address, resolves to ("Unknown", "Unknown").
    """
    prefix = oui_prefix(mac)
    if not prefix:
        return UNKNOWN_FINGERPRINT
    return FINGERPRINTS.get(prefix, UNKNOWN_FINGERPRINT)


def is_loopback_ip(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped.is_loopback
    return addr.is_loopback


def is_primary_candidate_ip(ip: str) -> bool:
    """Usable as a primary address: neither loopback nor link-local.

    IPv6 link-local (fe80::/10) is excluded as well, so an interface that
    only carries fe80:: addresses never counts as primary.
    """
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return not addr.is_loopback and not addr.is_link_local
