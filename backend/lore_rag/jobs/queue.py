"""Durable indexing job queue stored in SQLite."""

from __future__ import annotations

import sqlite3
import time
from typing import Any, Mapping

import orjson

from lore_rag.core.errors import JobNotFoundError
from lore_rag.core.logging import get_logger
from lore_rag.core.metrics import JOB_DURATION, JOBS_PROCESSED
from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.ingest.indexer import Indexer
from lore_rag.models.entities import Job, JobStatus
from lore_rag.models.jobs import JobPayload, parse_payload
from lore_rag.utils.time import days_ago_ms, now_ms

logger = get_logger(__name__)

_JOB_COLUMNS = (
    "id, owner_id, job_type, payload, status, retry_count, max_retries, error, "
    "created_at, updated_at, processed_at"
)


class JobQueue:
    """At-least-once queue of indexing work, claimed oldest first.

    A failed job goes back to ``pending`` with its original ``created_at``, so
    it keeps its place ahead of newer work, until ``max_retries`` failures
    mark it ``failed`` for good.
    """

    def __init__(
        self,
        db: SQLiteDatabase,
        indexer: Indexer,
        max_retries: int = 3,
        retention_days: float = 7.0,
    ) -> None:
        self.db = db
        self.indexer = indexer
        self.max_retries = max_retries
        self.retention_days = retention_days

    # Producers --------------------------------------------------------

    def enqueue(self, owner_id: str, job_type: str, payload: Mapping[str, Any] | JobPayload) -> int:
        """Validate and store a pending job; return its id."""
        job = parse_payload(job_type, payload)
        now = now_ms()
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO rag_jobs (
                  owner_id, job_type, payload, status, retry_count, max_retries, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, 0, ?, ?, ?)
                """,
                [
                    owner_id,
                    job.job_type,
                    orjson.dumps(job.to_storage()).decode("utf-8"),
                    JobStatus.PENDING.value,
                    self.max_retries,
                    now,
                    now,
                ],
            )
            job_id = int(cursor.lastrowid)
        logger.debug("Enqueued job #%s (%s)", job_id, job.job_type, extra={"ctx_owner_id": owner_id})
        return job_id

    # Consumers --------------------------------------------------------

    def process_next(self) -> bool:
        """Claim and run the oldest pending job of any owner; False when idle."""
        job = self._claim_oldest()
        if job is None:
            return False
        self._execute(job)
        return True

    def process_pending_for_user(self, owner_id: str) -> int:
        """Drain ``owner_id``'s pending jobs synchronously, oldest first."""
        processed = 0
        while True:
            job = self._claim_oldest(owner_id)
            if job is None:
                break
            self._execute(job)
            processed += 1
        if processed:
            logger.info("Processed %s pending jobs", processed, extra={"ctx_owner_id": owner_id})
        return processed

    def claim(self, job_id: int) -> bool:
        """Move a pending job to processing; True only for the caller that won."""
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE rag_jobs SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                [JobStatus.PROCESSING.value, now_ms(), job_id, JobStatus.PENDING.value],
            )
            return cursor.rowcount == 1

    def cleanup(self, retention_days: float | None = None) -> int:
        """Delete completed and failed jobs last touched before the retention window."""
        days = self.retention_days if retention_days is None else retention_days
        with self.db.transaction() as cursor:
            cursor.execute(
                "DELETE FROM rag_jobs WHERE status IN (?, ?) AND updated_at < ?",
                [JobStatus.COMPLETED.value, JobStatus.FAILED.value, days_ago_ms(days)],
            )
            deleted = cursor.rowcount
        if deleted:
            logger.info("Cleaned up %s old jobs", deleted)
        return deleted

    # Inspection -------------------------------------------------------

    def get_job(self, job_id: int) -> Job:
        row = self.db.query_one(f"SELECT {_JOB_COLUMNS} FROM rag_jobs WHERE id = ?", [job_id])
        if row is None:
            raise JobNotFoundError(job_id)
        return _row_to_job(row)

    def list_jobs(
        self,
        status: JobStatus | str | None = None,
        owner_id: str | None = None,
        limit: int = 100,
    ) -> list[Job]:
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(JobStatus(status).value)
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.db.query(
            f"SELECT {_JOB_COLUMNS} FROM rag_jobs{where} ORDER BY created_at, id LIMIT ?",
            [*params, limit],
        )
        return [_row_to_job(row) for row in rows]

    def counts(self, owner_id: str | None = None) -> dict[str, int]:
        params: list[Any] = []
        where = ""
        if owner_id is not None:
            where = " WHERE owner_id = ?"
            params.append(owner_id)
        rows = self.db.query(f"SELECT status, COUNT(*) AS count FROM rag_jobs{where} GROUP BY status", params)
        totals = {status.value: 0 for status in JobStatus}
        for row in rows:
            totals[row["status"]] = int(row["count"])
        return totals

    # Internals --------------------------------------------------------

    def _claim_oldest(self, owner_id: str | None = None) -> Job | None:
        clauses = ["status = ?"]
        params: list[Any] = [JobStatus.PENDING.value]
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        sql = f"SELECT {_JOB_COLUMNS} FROM rag_jobs WHERE {' AND '.join(clauses)} ORDER BY created_at, id LIMIT 1"
        while True:
            row = self.db.query_one(sql, params)
            if row is None:
                return None
            # Another worker may claim between the select and the update.
            if self.claim(row["id"]):
                job = _row_to_job(row)
                job.status = JobStatus.PROCESSING
                return job

    def _execute(self, job: Job) -> None:
        start = time.perf_counter()
        try:
            payload = parse_payload(job.job_type, job.payload)
            self.indexer.apply(job.owner_id, payload)
        except Exception as exc:
            self._record_failure(job, exc)
        else:
            self._record_success(job)
        finally:
            JOB_DURATION.labels(job_type=job.job_type).observe(time.perf_counter() - start)

    def _record_success(self, job: Job) -> None:
        now = now_ms()
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE rag_jobs SET status = ?, processed_at = ?, updated_at = ? WHERE id = ?",
                [JobStatus.COMPLETED.value, now, now, job.id],
            )
        JOBS_PROCESSED.labels(job_type=job.job_type, outcome="completed").inc()
        logger.info("Completed job #%s (%s)", job.id, job.job_type, extra={"ctx_owner_id": job.owner_id})

    def _record_failure(self, job: Job, exc: BaseException) -> None:
        message = str(exc) or type(exc).__name__
        retry_count = job.retry_count + 1
        exhausted = retry_count >= job.max_retries
        status = JobStatus.FAILED if exhausted else JobStatus.PENDING
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE rag_jobs SET status = ?, error = ?, retry_count = ?, updated_at = ? WHERE id = ?",
                [status.value, message, retry_count, now_ms(), job.id],
            )
        context = {"ctx_owner_id": job.owner_id, "ctx_job_id": job.id, "ctx_job_type": job.job_type}
        if exhausted:
            JOBS_PROCESSED.labels(job_type=job.job_type, outcome="failed").inc()
            logger.error("Job #%s failed after %s attempts: %s", job.id, retry_count, message, extra=context)
        else:
            JOBS_PROCESSED.labels(job_type=job.job_type, outcome="retry").inc()
            logger.warning(
                "Job #%s will retry (attempt %s/%s): %s",
                job.id,
                retry_count + 1,
                job.max_retries,
                message,
                extra=context,
            )


def _row_to_job(row: sqlite3.Row) -> Job:
    try:
        payload = orjson.loads(row["payload"])
    except orjson.JSONDecodeError:
        payload = {"raw": row["payload"]}
    return Job(
        id=row["id"],
        owner_id=row["owner_id"],
        job_type=row["job_type"],
        payload=payload if isinstance(payload, dict) else {"raw": payload},
        status=JobStatus(row["status"]),
        retry_count=row["retry_count"],
        max_retries=row["max_retries"],
        error=row["error"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        processed_at=row["processed_at"],
    )


__all__ = ["JobQueue"]
