import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Union

from src.domain.exceptions import ConflictError, NotFoundError, UnavailableError
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.infrastructure.acl import IdeaTranslator

logger = logging.getLogger(__name__)

class JsonFileRepository(IdeaRepository):
    """
    Repository backed by a single JSON document: {"<id>": {record}, ...}.

    File IO runs in a worker thread, so the event loop is never blocked. All
    operations on one instance are serialised by an asyncio.Lock; separate
    processes writing the same file are not coordinated. Writes go to a
    temporary file that replaces the store atomically.
    A missing file is an empty store; an unreadable or corrupt file is
    reported as UnavailableError.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        with self.path.open('r', encoding='utf-8') as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object.")
        for idea_id, record in data.items():
            if not isinstance(record, dict):
                raise ValueError(f"Record {idea_id!r} in {self.path} is not a JSON object.")
        return data

    def _write(self, records: Dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(records, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def _load(self) -> Dict[str, dict]:
        try:
            return await asyncio.to_thread(self._read)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read idea store {self.path}: {e}")
            raise UnavailableError(f"Idea store {self.path} is unreadable: {e}") from e

    async def _store(self, records: Dict[str, dict]) -> None:
        try:
            await asyncio.to_thread(self._write, records)
        except OSError as e:
            logger.error(f"Could not write idea store {self.path}: {e}")
            raise UnavailableError(f"Idea store {self.path} is not writable: {e}") from e

    async def find(self, idea_id: str) -> Idea:
        async with self._lock:
            records = await self._load()
        record = records.get(idea_id)
        if record is None:
            raise NotFoundError(idea_id)
        try:
            return IdeaTranslator.to_domain(record)
        except ValueError as e:
            raise UnavailableError(f"Corrupt record for {idea_id!r} in {self.path}.") from e

    async def save(self, idea: Idea) -> None:
        async with self._lock:
            records = await self._load()
            if idea.id in records:
                raise ConflictError(idea.id, "Idea already exists.")
            records[idea.id] = IdeaTranslator.to_record(idea)
            await self._store(records)

    async def update(self, idea: Idea) -> Idea:
        async with self._lock:
            records = await self._load()
            stored = records.get(idea.id)
            if stored is None:
                raise NotFoundError(idea.id)
            if stored.get('version', 0) != idea.version:
                raise ConflictError(
                    idea.id, f"Stale version {idea.version}, stored is {stored.get('version', 0)}."
                )
            persisted = idea.model_copy(update={'version': idea.version + 1})
            records[idea.id] = IdeaTranslator.to_record(persisted)
            await self._store(records)
            return persisted

    async def delete(self, idea_id: str) -> None:
        async with self._lock:
            records = await self._load()
            if records.pop(idea_id, None) is None:
                raise NotFoundError(idea_id)
            await self._store(records)

    async def list_ids(self) -> List[str]:
        async with self._lock:
            records = await self._load()
        return sorted(records)
