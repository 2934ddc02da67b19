from __future__ import annotations

import logging
import threading
import time

from crypto_exchange.schemas.quote import RefreshResult
from crypto_exchange.services.tracking import CryptoTrackingService

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Fixed-period background refresh of every tracked symbol."""

    def __init__(
        self,
        *,
        tracking_service: CryptoTrackingService,
        interval_sec: float = 300.0,
    ) -> None:
        self.tracking_service = tracking_service
        self.interval_sec = interval_sec
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._metrics = {
            "runs": 0,
            "skipped": 0,
            "failures": 0,
        }
        self._last_result: RefreshResult | None = None
        self._last_run_ts: int | None = None

    def trigger(self) -> RefreshResult:
        result = self.tracking_service.refresh_all(blocking=False)
        self._last_run_ts = int(time.time())
        if result.skipped:
            self._metrics["skipped"] += 1
            return result
        self._metrics["runs"] += 1
        self._last_result = result
        return result

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_sec):
            try:
                self.trigger()
            except Exception:
                self._metrics["failures"] += 1
                logger.exception("[REFRESH][tick_error]")

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="quote-refresh-worker")
        self._thread.start()
        logger.info("[REFRESH][worker_start] interval_sec=%s", self.interval_sec)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        logger.info("[REFRESH][worker_stop]")

    def metrics(self) -> dict:
        last = self._last_result
        return {
            **self._metrics,
            "last_updated": last.updated if last else None,
            "last_attempted": last.attempted if last else None,
            "last_run_ts": self._last_run_ts,
            "running": self.running,
            "interval_sec": self.interval_sec,
        }
