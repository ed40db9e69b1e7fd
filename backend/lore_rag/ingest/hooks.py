"""Entry points for the host application's write path.

Every hook either enqueues jobs (``queue`` mode) or indexes inline
(``direct`` mode). Failures are logged and reported through the return
value; they never propagate into the create/update/delete that triggered
them.
"""

from __future__ import annotations

from typing import Literal

from lore_rag.core.logging import get_logger
from lore_rag.ingest.indexer import Indexer
from lore_rag.jobs.queue import JobQueue
from lore_rag.models.entities import SourceType
from lore_rag.models.jobs import DeleteChunksJob, IndexCharacterJob, IndexLoreJob, IndexMessageJob, JobPayload

logger = get_logger(__name__)

IndexMode = Literal["queue", "direct"]


class IndexingHooks:
    def __init__(self, queue: JobQueue, indexer: Indexer, mode: IndexMode = "queue") -> None:
        self.queue = queue
        self.indexer = indexer
        self.mode = mode

    def lore_saved(self, owner_id: str, lore_id: int, title: str, content: str, created: bool = False) -> bool:
        job = IndexLoreJob(lore_id=lore_id, title=title, content=content, replace=not created)
        return self._dispatch(owner_id, [job])

    def lore_deleted(self, owner_id: str, lore_id: int) -> bool:
        return self._dispatch(owner_id, [DeleteChunksJob(source_type=SourceType.LORE, source_id=lore_id)])

    def character_saved(
        self,
        owner_id: str,
        character_id: int,
        name: str,
        bio: str | None = None,
        created: bool = False,
    ) -> bool:
        job = IndexCharacterJob(character_id=character_id, name=name, bio=bio, replace=not created)
        return self._dispatch(owner_id, [job])

    def character_deleted(self, owner_id: str, character_id: int) -> bool:
        return self._dispatch(
            owner_id,
            [DeleteChunksJob(source_type=SourceType.CHARACTER, source_id=character_id)],
        )

    def chat_turn(
        self,
        owner_id: str,
        conversation_id: int,
        user_text: str,
        assistant_text: str | None = None,
        character_ref: int | None = None,
    ) -> bool:
        steps: list[JobPayload] = [
            IndexMessageJob(
                conversation_id=conversation_id,
                role="user",
                content=user_text,
                character_ref=character_ref,
            )
        ]
        if assistant_text:
            steps.append(
                IndexMessageJob(
                    conversation_id=conversation_id,
                    role="assistant",
                    content=assistant_text,
                    character_ref=character_ref,
                )
            )
        return self._dispatch(owner_id, steps)

    def _dispatch(self, owner_id: str, steps: list[JobPayload]) -> bool:
        # Steps run in order and stop at the first failure.
        for step in steps:
            try:
                if self.mode == "queue":
                    self.queue.enqueue(owner_id, step.job_type, step)
                else:
                    self.indexer.apply(owner_id, step)
            except Exception:
                logger.exception(
                    "Indexing hook failed for %s",
                    step.job_type,
                    extra={"ctx_owner_id": owner_id, "ctx_mode": self.mode},
                )
                return False
        return True


__all__ = ["IndexingHooks", "IndexMode"]
