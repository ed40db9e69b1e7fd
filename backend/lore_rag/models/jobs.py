"""Job payload variants, discriminated by ``job_type``."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, Field, TypeAdapter

from lore_rag.core.errors import UnknownJobTypeError
from lore_rag.models.entities import SourceType


class _Payload(BaseModel):
    model_config = {"extra": "forbid", "frozen": True}

    def to_storage(self) -> dict[str, Any]:
        """Payload fields as stored in the ``payload`` column."""
        return self.model_dump(mode="json", exclude={"job_type"})


class IndexLoreJob(_Payload):
    job_type: Literal["index_lore"] = "index_lore"
    lore_id: int
    title: str
    content: str
    replace: bool = False


class IndexCharacterJob(_Payload):
    job_type: Literal["index_character"] = "index_character"
    character_id: int
    name: str
    bio: str | None = None
    replace: bool = False


class IndexMessageJob(_Payload):
    job_type: Literal["index_message"] = "index_message"
    conversation_id: int
    role: Literal["user", "assistant"]
    content: str
    character_ref: int | None = None


class DeleteChunksJob(_Payload):
    job_type: Literal["delete_chunks"] = "delete_chunks"
    source_type: SourceType
    source_id: int | None = None


JobPayload = Annotated[
    Union[IndexLoreJob, IndexCharacterJob, IndexMessageJob, DeleteChunksJob],
    Field(discriminator="job_type"),
]

JOB_TYPES: tuple[str, ...] = ("index_lore", "index_character", "index_message", "delete_chunks")

_ADAPTER: TypeAdapter[JobPayload] = TypeAdapter(JobPayload)


def parse_payload(job_type: str, payload: Mapping[str, Any] | _Payload) -> JobPayload:
    """Validate ``payload`` into the variant named by ``job_type``.

    Raises ``UnknownJobTypeError`` for unrecognised types and pydantic's
    ``ValidationError`` for malformed payloads.
    """
    if job_type not in JOB_TYPES:
        raise UnknownJobTypeError(job_type)
    if isinstance(payload, _Payload):
        if payload.job_type != job_type:
            raise ValueError(f"Payload {type(payload).__name__} does not match job type {job_type}")
        return payload
    return _ADAPTER.validate_python({**payload, "job_type": job_type})


__all__ = [
    "IndexLoreJob",
    "IndexCharacterJob",
    "IndexMessageJob",
    "DeleteChunksJob",
    "JobPayload",
    "JOB_TYPES",
    "parse_payload",
]
