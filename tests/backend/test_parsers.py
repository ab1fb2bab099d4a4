from models import NetworkInterface, PortEntry
from net_parsers import (
    normalize_mac,
    parse_connection_sources,
    parse_interface_records,
    parse_ip_addr_output,
    parse_neighbor_line,
    parse_neighbor_table,
    parse_port_table,
    parse_proc_net_dev,
    recent_lines,
    strip_port,
)

SS_TULN = """\
Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port Process
udp   UNCONN 0      0      127.0.0.53%lo:53         0.0.0.0:*
tcp   LISTEN 0      4096         0.0.0.0:22         0.0.0.0:*
tcp   LISTEN 0      511             [::]:80            [::]:*
tcp   LISTEN 0      128        127.0.0.1:notaport   0.0.0.0:*
"""

IP_NEIGH = """\
192.168.1.1 dev eth0 lladdr b8:27:eb:12:34:56 REACHABLE
192.168.1.20 dev eth0 lladdr 08:00:27:AA:BB:CC STALE
192.168.1.30 dev eth0  FAILED
fe80::1 dev eth0 lladdr 00:1b:63:01:02:03 router DELAY
garbage line
"""


def test_port_table_extracts_proto_port_state():
    ports = parse_port_table(SS_TULN)
    assert ports == [
        PortEntry(protocol="udp", port=53, state="UNCONN"),
        PortEntry(protocol="tcp", port=22, state="LISTEN"),
        PortEntry(protocol="tcp", port=80, state="LISTEN"),
    ]


def test_port_table_drops_exactly_the_unparsable_line():
    data_lines = SS_TULN.strip().splitlines()[1:]
    assert len(parse_port_table(SS_TULN)) == len(data_lines) - 1


def test_port_table_defaults_state_when_column_missing():
    text = "header\ntcp x y z 10.0.0.2:8080\n"
    assert parse_port_table(text) == [PortEntry(protocol="tcp", port=8080, state="LISTEN")]


def test_port_table_skips_short_lines_and_out_of_range_ports():
    text = "header\ntcp LISTEN 0\ntcp LISTEN 0 0 0.0.0.0:70000 0.0.0.0:*\n"
    assert parse_port_table(text) == []


def test_neighbor_line_captures_lladdr_and_state():
    peer = parse_neighbor_line("192.168.1.1 dev eth0 lladdr b8:27:eb:12:34:56 REACHABLE")
    assert peer.ip == "192.168.1.1"
    assert peer.interface == "eth0"
    assert peer.mac == "b8:27:eb:12:34:56"
    assert peer.state == "REACHABLE"
    assert (peer.device_type, peer.os_guess) == ("IoT Device", "Raspberry Pi")


def test_neighbor_table_defaults_and_drops():
    peers = parse_neighbor_table(IP_NEIGH)
    assert [p.ip for p in peers] == ["192.168.1.1", "192.168.1.20", "192.168.1.30", "fe80::1"]

    vbox = peers[1]
    assert vbox.mac == "08:00:27:AA:BB:CC"
    assert (vbox.device_type, vbox.os_guess) == ("Virtual Machine", "VirtualBox")

    failed = peers[2]
    assert failed.mac is None
    assert failed.state == "UNKNOWN"
    assert failed.device_type == "Unknown"

    assert peers[3].state == "DELAY"
    assert peers[3].os_guess == "Apple"


def test_neighbor_line_requires_four_fields():
    assert parse_neighbor_line("10.0.0.1 dev eth0") is None


def test_interface_records_exclude_nameless_and_bad_ips():
    records = [
        {"name": "lo", "ips": ["127.0.0.1", "::1"], "mac": "00:00:00:00:00:00", "is_up": True},
        {"name": "", "ips": ["10.0.0.9"], "is_up": True},
        {"name": "eth0", "ips": ["10.0.0.2", "not-an-ip", "fe80::1%eth0"], "mac": "AA-BB-CC-DD-EE-FF", "is_up": True},
        {"name": "wlan0"},
    ]
    interfaces = parse_interface_records(records)
    assert [i.name for i in interfaces] == ["lo", "eth0", "wlan0"]
    eth0 = interfaces[1]
    assert eth0 == NetworkInterface(
        name="eth0",
        ip_addresses=["10.0.0.2", "fe80::1"],
        is_up=True,
        mac_address="aa:bb:cc:dd:ee:ff",
    )
    assert interfaces[2].ip_addresses == []
    assert interfaces[2].mac_address is None
    assert interfaces[2].is_up is False


def test_ip_addr_output_builds_records():
    link = (
        "1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue state UNKNOWN mode DEFAULT "
        "group default qlen 1000\\    link/loopback 00:00:00:00:00:00 brd 00:00:00:00:00:00\n"
        "2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP mode DEFAULT "
        "group default qlen 1000\\    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff\n"
        "3: wg0: <POINTOPOINT,NOARP> mtu 1420 qdisc noop state DOWN mode DEFAULT group default\n"
    )
    addr = (
        "1: lo    inet 127.0.0.1/8 scope host lo\\       valid_lft forever preferred_lft forever\n"
        "2: eth0    inet 10.0.0.2/24 brd 10.0.0.255 scope global eth0\\       valid_lft forever\n"
        "2: eth0    inet6 fe80::5054:ff:fe12:3456/64 scope link \\       valid_lft forever\n"
    )
    interfaces = parse_interface_records(parse_ip_addr_output(addr, link))
    by_name = {i.name: i for i in interfaces}
    assert by_name["eth0"].ip_addresses == ["10.0.0.2", "fe80::5054:ff:fe12:3456"]
    assert by_name["eth0"].mac_address == "52:54:00:12:34:56"
    assert by_name["eth0"].is_up is True
    assert by_name["wg0"].is_up is False
    assert by_name["lo"].ip_addresses == ["127.0.0.1"]


def test_connection_sources_strip_ports_and_brackets():
    text = (
        "State Recv-Q Send-Q Local Address:Port Peer Address:Port\n"
        "ESTAB 0 0 10.0.0.2:22 203.0.113.5:51000\n"
        "ESTAB 0 0 [::1]:631 [2001:db8::7]:40000\n"
        "LISTEN 0 128 0.0.0.0:22 *:*\n"
        "short row\n"
    )
    assert parse_connection_sources(text) == ["203.0.113.5", "2001:db8::7"]


def test_strip_port_variants():
    assert strip_port("10.0.0.2:22") == "10.0.0.2"
    assert strip_port("[fe80::1%eth0]:22") == "fe80::1%eth0"
    assert strip_port("::ffff:10.0.0.3:443") == "::ffff:10.0.0.3"


def test_normalize_mac_rejects_short_addresses():
    assert normalize_mac("AA:BB:CC:DD:EE:FF") == "aa:bb:cc:dd:ee:ff"
    assert normalize_mac("aa:bb:cc") is None
    assert normalize_mac(None) is None


def test_proc_net_dev_counters():
    text = (
        "Inter-|   Receive                                                |  Transmit\n"
        " face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed\n"
        "    lo:  1000      10    0    0    0     0          0         0     1000      10    0    0    0     0       0          0\n"
        "  eth0: 123456    789    0    0    0     0          0         0    65432     321    0    0    0     0       0          0\n"
    )
    counters = parse_proc_net_dev(text)
    assert [c.name for c in counters] == ["lo", "eth0"]
    assert counters[1].rx_bytes == 123456
    assert counters[1].tx_packets == 321


def test_recent_lines_keeps_tail_without_blanks():
    text = "\n".join(f"line {i}" for i in range(150)) + "\n\n"
    tail = recent_lines(text, 100)
    assert len(tail) == 100
    assert tail[0] == "line 50"
    assert tail[-1] == "line 149"


def test_parsers_are_deterministic():
    assert parse_port_table(SS_TULN) == parse_port_table(SS_TULN)
    assert parse_neighbor_table(IP_NEIGH) == parse_neighbor_table(IP_NEIGH)
    assert repr(parse_neighbor_table(IP_NEIGH)) == repr(parse_neighbor_table(IP_NEIGH))


def test_interface_records_keep_repeated_addresses_in_order():
    records = [{"name": "eth0", "ips": ["10.0.0.2", "fe80::1", "10.0.0.2"], "is_up": True}]
    assert parse_interface_records(records)[0].ip_addresses == ["10.0.0.2", "fe80::1", "10.0.0.2"]
