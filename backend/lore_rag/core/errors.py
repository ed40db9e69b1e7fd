"""Exception hierarchy."""

from __future__ import annotations


class LoreRagError(Exception):
    """Base class for errors raised by the indexing pipeline."""


class UnknownJobTypeError(LoreRagError):
    def __init__(self, job_type: str) -> None:
        super().__init__(f"Unknown job type: {job_type}")
        self.job_type = job_type


class JobNotFoundError(LoreRagError):
    def __init__(self, job_id: int) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


__all__ = ["LoreRagError", "UnknownJobTypeError", "JobNotFoundError"]
