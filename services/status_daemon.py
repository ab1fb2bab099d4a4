"""
NetNinja status daemon.
Periodically collects a full status report and publishes it to dashboard clients.
"""

import threading
from typing import Callable, Optional

from report import StatusReport, collect_report, report_as_dict
from toolkit.utils import CancelScope


class StatusDaemon:
    """Polls every status section on an interval and hands snapshots to ``publish``.

    Each start() opens a new generation. A loop left over from an earlier
    generation (stop() only waits briefly for it) exits at its next check and
    never publishes, so at most one loop feeds the dashboard.
    """

    def __init__(
        self,
        scanner,
        monitor,
        publish: Callable[[dict], None],
        *,
        interval_seconds: int = 5,
    ):
        self.scanner = scanner
        self.monitor = monitor
        self.publish = publish
        self.interval_seconds = max(1, int(interval_seconds))
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._generation = 0
        self._scope: Optional[CancelScope] = None
        self._last_tick_at: str = ""
        self._last_error: str = ""
        self._ticks = 0
        self.latest: Optional[dict] = None

    def configure(self, *, interval_seconds: Optional[int] = None) -> None:
        with self._lock:
            if interval_seconds is not None:
                self.interval_seconds = max(1, int(interval_seconds))

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self.running = True
            self._generation += 1
            self._wake = threading.Event()
            self.thread = threading.Thread(
                target=self._loop,
                args=(self._generation, self._wake),
                daemon=True,
            )
            self.thread.start()

    def stop(self) -> None:
        with self._lock:
            self.running = False
            self._generation += 1
            scope = self._scope
            wake = self._wake
            thread = self.thread
        wake.set()
        # only this daemon's tick is cancelled; REST queries keep their commands
        if scope is not None:
            scope.cancel()
        if thread:
            thread.join(timeout=2)

    def status(self) -> dict:
        with self._lock:
            return {
                "running": bool(self.running),
                "interval_seconds": int(self.interval_seconds),
                "ticks": int(self._ticks),
                "last_tick_at": self._last_tick_at,
                "last_error": self._last_error,
            }

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self.running and generation == self._generation

    def _loop(self, generation: int, wake: threading.Event) -> None:
        while self._is_current(generation):
            with self._lock:
                interval = int(self.interval_seconds)
            self.tick(timeout=float(interval) * 2, generation=generation)
            wake.wait(interval)

    def tick(self, *, timeout: Optional[float] = None, generation: Optional[int] = None) -> Optional[dict]:
        """Collect one snapshot and publish it.

        Returns None without publishing when ``generation`` has gone stale.
        """
        scope = CancelScope()
        with self._lock:
            if generation is not None and not (self.running and generation == self._generation):
                return None
            self._scope = scope
        report: StatusReport = collect_report(self.scanner, self.monitor, timeout=timeout, scope=scope)
        if generation is not None and not self._is_current(generation):
            return None
        snapshot = report_as_dict(report)
        try:
            self.publish(snapshot)
            error = ""
        except Exception as exc:
            error = f"publish failed: {exc}"
        with self._lock:
            self.latest = snapshot
            self._ticks += 1
            self._last_tick_at = report.generated_at
            self._last_error = error
        return snapshot
