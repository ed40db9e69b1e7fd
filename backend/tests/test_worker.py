"""Tests for the background job worker."""

import time

from lore_rag.jobs.queue import JobQueue
from lore_rag.jobs.worker import JobWorker
from lore_rag.models.entities import JobStatus


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class FlakyQueue:
    """Raises on the first poll, then reports an empty queue."""

    def __init__(self) -> None:
        self.polls = 0
        self.cleanups = 0

    def process_next(self) -> bool:
        self.polls += 1
        if self.polls == 1:
            raise RuntimeError("database is locked")
        return False

    def cleanup(self) -> int:
        self.cleanups += 1
        return 0


def test_run_once_processes_one_job(queue: JobQueue) -> None:
    first = queue.enqueue("u1", "index_lore", {"lore_id": 1, "title": "A", "content": "ring"})
    second = queue.enqueue("u1", "index_lore", {"lore_id": 2, "title": "B", "content": "ring"})
    worker = JobWorker(queue, cleanup_interval=None)

    assert worker.run_once() is True
    assert queue.get_job(first).status is JobStatus.COMPLETED
    assert queue.get_job(second).status is JobStatus.PENDING
    assert worker.run_once() is True
    assert worker.run_once() is False


def test_background_thread_drains_queue(queue: JobQueue) -> None:
    job_id = queue.enqueue("u1", "index_lore", {"lore_id": 1, "title": "A", "content": "ring"})
    worker = JobWorker(queue, poll_interval=0.01, cleanup_interval=None)
    worker.start()
    try:
        assert worker.running
        assert _wait_for(lambda: queue.get_job(job_id).status is JobStatus.COMPLETED)
    finally:
        worker.stop()
    assert not worker.running


def test_loop_survives_errors() -> None:
    flaky = FlakyQueue()
    worker = JobWorker(flaky, poll_interval=0.01, cleanup_interval=None)
    worker.start()
    try:
        assert _wait_for(lambda: flaky.polls >= 3)
        assert worker.running
    finally:
        worker.stop()


def test_periodic_cleanup_runs() -> None:
    flaky = FlakyQueue()
    flaky.polls = 1
    worker = JobWorker(flaky, cleanup_interval=0.0)
    assert worker.run_once() is False
    assert flaky.cleanups == 1
