"""Background thread that drains the job queue."""

from __future__ import annotations

import threading
import time

from lore_rag.core.logging import get_logger
from lore_rag.jobs.queue import JobQueue

logger = get_logger(__name__)


class JobWorker:
    """Polls ``JobQueue.process_next`` until stopped.

    Idle polls and loop-level errors both wait ``poll_interval`` before the
    next attempt. Old jobs are purged every ``cleanup_interval`` seconds.
    """

    def __init__(
        self,
        queue: JobQueue,
        poll_interval: float = 1.0,
        cleanup_interval: float | None = 3600.0,
    ) -> None:
        self.queue = queue
        self.poll_interval = poll_interval
        self.cleanup_interval = cleanup_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_cleanup = time.monotonic()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="rag-job-worker", daemon=True)
        self._thread.start()
        logger.info("Job worker started")

    def stop(self, timeout: float = 10.0) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout=timeout)
            logger.info("Job worker stopped")

    def run_once(self) -> bool:
        """One loop iteration: maybe clean up, then process at most one job."""
        self._maybe_cleanup()
        return self.queue.process_next()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                had_job = self.run_once()
            except Exception:
                logger.exception("Error in job worker loop")
                self._stop_event.wait(self.poll_interval)
                continue
            if not had_job:
                self._stop_event.wait(self.poll_interval)

    def _maybe_cleanup(self) -> None:
        if self.cleanup_interval is None:
            return
        now = time.monotonic()
        if now - self._last_cleanup < self.cleanup_interval:
            return
        self._last_cleanup = now
        self.queue.cleanup()


__all__ = ["JobWorker"]
