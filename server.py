#!/usr/bin/env python3
"""
NetNinja - Network & Security Status Dashboard
Backend server exposing status queries over REST and live updates over Socket.IO.
"""

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO, emit

from config import API_KEY, COMMAND_TIMEOUT, DEBUG, POLL_INTERVAL, SCAPY_AVAILABLE
from net_scanner import InterfaceNotFound, NetworkScanner
from report import collect_report, report_as_dict
from security_monitor import SecurityMonitor
from services.status_daemon import StatusDaemon
from toolkit.utils import CommandRunner, ExecutionFailure, safe_json

if not SCAPY_AVAILABLE:
    print("Warning: Scapy not available, falling back to `ip -o addr`. Install with: pip install scapy")


app = Flask(__name__)
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

runner = CommandRunner(timeout=COMMAND_TIMEOUT)
scanner = NetworkScanner(runner)
monitor = SecurityMonitor(runner)


def _publish_snapshot(snapshot: dict) -> None:
    socketio.emit("status_update", snapshot)


status_daemon = StatusDaemon(scanner, monitor, _publish_snapshot, interval_seconds=POLL_INTERVAL)


@app.before_request
def enforce_optional_api_key():
    """Optional API key guard. Disabled when NETNINJA_API_KEY is unset."""
    if not API_KEY:
        return None
    if request.path == "/api/status":
        return None
    provided = request.headers.get("X-API-Key", "")
    if provided != API_KEY:
        return jsonify({"error": "Unauthorized"}), 401
    return None


@app.errorhandler(ExecutionFailure)
def handle_execution_failure(exc):
    return jsonify({"error": str(exc), "program": exc.program}), 503


# REST API Endpoints
@app.route("/api/status", methods=["GET"])
def get_status():
    """Get server status"""
    return jsonify({
        "scapy_available": SCAPY_AVAILABLE,
        "command_timeout": COMMAND_TIMEOUT,
        "daemon": status_daemon.status(),
        "api_key_enabled": bool(API_KEY),
    })


@app.route("/api/interfaces", methods=["GET"])
def get_interfaces():
    interfaces = scanner.get_interfaces()
    return jsonify({"interfaces": safe_json(interfaces), "count": len(interfaces)})


@app.route("/api/interfaces/primary", methods=["GET"])
def get_primary_interface():
    try:
        iface = scanner.get_primary_interface()
    except InterfaceNotFound as exc:
        return jsonify({"error": str(exc)}), 404
    return jsonify(safe_json(iface))


@app.route("/api/interfaces/counters", methods=["GET"])
def get_interface_counters():
    return jsonify({"counters": safe_json(scanner.get_interface_counters())})


@app.route("/api/vpn", methods=["GET"])
def get_vpn():
    return jsonify(safe_json(scanner.get_vpn_status()))


@app.route("/api/ports", methods=["GET"])
def get_ports():
    ports = scanner.get_open_ports()
    return jsonify({"ports": safe_json(ports), "count": len(ports)})


@app.route("/api/peers", methods=["GET"])
def get_peers():
    peers = scanner.get_network_peers()
    return jsonify({"peers": safe_json(peers), "count": len(peers)})


@app.route("/api/security", methods=["GET"])
def get_security():
    summary = monitor.get_security_summary()
    payload = safe_json(summary)
    payload["counts"] = summary.counts()
    payload["unavailable_sources"] = summary.unavailable_sources
    payload["summary"] = summary.describe()
    return jsonify(payload)


@app.route("/api/firewall", methods=["GET"])
def get_firewall():
    return jsonify({"active": monitor.check_firewall_status()})


@app.route("/api/report", methods=["GET"])
def get_report():
    report = collect_report(scanner, monitor, timeout=float(COMMAND_TIMEOUT) * 3)
    return jsonify(report_as_dict(report))


@app.route("/api/daemon/status", methods=["GET"])
def daemon_status():
    return jsonify(status_daemon.status())


@app.route("/api/daemon/start", methods=["POST"])
def daemon_start():
    data = request.get_json(silent=True) or {}
    interval = data.get("interval_seconds")
    if interval is not None:
        try:
            status_daemon.configure(interval_seconds=int(interval))
        except (TypeError, ValueError):
            return jsonify({"error": "interval_seconds must be an integer"}), 400
    status_daemon.start()
    return jsonify(status_daemon.status())


@app.route("/api/daemon/stop", methods=["POST"])
def daemon_stop():
    status_daemon.stop()
    return jsonify(status_daemon.status())


# WebSocket events for real-time updates
@socketio.on("connect")
def handle_connect():
    """Send the latest snapshot to a newly connected dashboard"""
    emit("status", {
        "connected": True,
        "daemon": status_daemon.status(),
    })
    if status_daemon.latest is not None:
        emit("status_update", status_daemon.latest)


def run(host: str = "127.0.0.1", port: int = 5002, *, poll: bool = True) -> None:
    if poll:
        status_daemon.start()
    print(f"Starting NetNinja dashboard server on {host}:{port}")
    print(f"Scapy available: {SCAPY_AVAILABLE}")
    socketio.run(
        app,
        host=host,
        port=port,
        debug=DEBUG,
        allow_unsafe_werkzeug=DEBUG,
    )


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="NetNinja - Network Status Dashboard Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5002, help="Port to bind to")
    parser.add_argument("--no-poll", action="store_true", help="Do not start the status polling daemon")
    args = parser.parse_args()
    run(args.host, args.port, poll=not args.no_poll)
