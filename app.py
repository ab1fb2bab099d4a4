#!/usr/bin/env python3
"""
NetNinja - Linux Network & Security Status
Entry point: one-shot status report, or the live dashboard server.
"""

import argparse
import json
import sys

from config import COMMAND_TIMEOUT
from net_scanner import NetworkScanner
from report import collect_report, render_report, report_as_dict
from security_monitor import SecurityMonitor
from toolkit.utils import CommandRunner


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="netninja",
        description="NetNinja - Advanced Linux Network Troubleshooting CLI",
    )
    sub = parser.add_subparsers(dest="command")

    status = sub.add_parser("status", help="Show quick network status summary")
    status.add_argument("--json", action="store_true", help="Print the report as JSON")
    status.add_argument("--timeout", type=float, default=None, help="Overall report timeout in seconds")

    serve = sub.add_parser("serve", help="Run the live monitoring dashboard server")
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve.add_argument("--port", type=int, default=5002, help="Port to bind to")
    serve.add_argument("--no-poll", action="store_true", help="Do not start the status polling daemon")
    return parser.parse_args(argv)


def show_status(as_json: bool = False, timeout=None) -> int:
    runner = CommandRunner(timeout=COMMAND_TIMEOUT)
    scanner = NetworkScanner(runner)
    monitor = SecurityMonitor(runner)
    try:
        report = collect_report(scanner, monitor, timeout=timeout)
    except KeyboardInterrupt:
        print("Interrupted; in-flight commands terminated", file=sys.stderr)
        return 130
    if as_json:
        print(json.dumps(report_as_dict(report), indent=2))
    else:
        print(render_report(report), end="")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.command == "status":
        return show_status(as_json=args.json, timeout=args.timeout)
    if args.command == "serve":
        import server
        server.run(args.host, args.port, poll=not args.no_poll)
        return 0
    parse_args(["--help"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
