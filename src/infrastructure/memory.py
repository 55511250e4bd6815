import asyncio
from typing import Dict, List

from src.domain.exceptions import ConflictError, NotFoundError
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.infrastructure.acl import IdeaTranslator

class InMemoryRepository(IdeaRepository):
    """
    Dict-backed repository.

    Records are stored as plain dicts, so callers never share an Idea instance
    with the store. Calls never block the event loop and may be issued
    concurrently; an asyncio.Lock serialises the read-check-write sequences.
    """

    def __init__(self):
        self._records: Dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def find(self, idea_id: str) -> Idea:
        record = self._records.get(idea_id)
        if record is None:
            raise NotFoundError(idea_id)
        return IdeaTranslator.to_domain(record)

    async def save(self, idea: Idea) -> None:
        async with self._lock:
            if idea.id in self._records:
                raise ConflictError(idea.id, "Idea already exists.")
            self._records[idea.id] = IdeaTranslator.to_record(idea)

    async def update(self, idea: Idea) -> Idea:
        async with self._lock:
            stored = self._records.get(idea.id)
            if stored is None:
                raise NotFoundError(idea.id)
            if stored['version'] != idea.version:
                raise ConflictError(
                    idea.id, f"Stale version {idea.version}, stored is {stored['version']}."
                )
            persisted = idea.model_copy(update={'version': idea.version + 1})
            self._records[idea.id] = IdeaTranslator.to_record(persisted)
            return persisted

    async def delete(self, idea_id: str) -> None:
        async with self._lock:
            if self._records.pop(idea_id, None) is None:
                raise NotFoundError(idea_id)

    async def list_ids(self) -> List[str]:
        return sorted(self._records)
