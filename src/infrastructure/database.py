import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from sqlalchemy.ext.asyncio import create_async_engine, AsyncConnection
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy import (
    Table, Column, String, Integer, Float, DateTime, MetaData,
    delete, func, insert, select, update,
)

from src.domain.exceptions import ConflictError, NotFoundError, UnavailableError
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.infrastructure.acl import IdeaTranslator

logger = logging.getLogger(__name__)

# SQLAlchemy core Table definition
metadata = MetaData()
ideas_table = Table(
    'ideas', metadata,
    Column('id', String, primary_key=True),
    Column('title', String, nullable=False, server_default=''),
    Column('votes', Integer, nullable=False),
    Column('rating', Float, nullable=False),
    Column('version', Integer, nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
)

UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)


class SqlRepository(IdeaRepository):
    """
    Repository backed by a relational database through SQLAlchemy's async engine.

    Each call checks a connection out of the engine's pool, so calls may run
    concurrently; each write runs in its own transaction. Updates are
    conditional on the stored version, so a concurrent writer produces a
    ConflictError instead of a silent overwrite.
    """

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)

    @asynccontextmanager
    async def _transaction(
        self, idea_id: str = None, conflict_message: str = "Integrity constraint violated."
    ) -> AsyncIterator[AsyncConnection]:
        try:
            async with self.engine.begin() as conn:
                yield conn
        except IntegrityError as e:
            raise ConflictError(idea_id, conflict_message) from e
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"Database unavailable while handling {idea_id!r}: {e}")
            raise UnavailableError(f"Database unavailable: {e}") from e

    async def create_schema(self) -> None:
        """Creates the ideas table if it does not exist yet."""
        async with self._transaction() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def find(self, idea_id: str) -> Idea:
        async with self._transaction(idea_id) as conn:
            result = await conn.execute(select(ideas_table).where(ideas_table.c.id == idea_id))
            row = result.mappings().first()

        if row is None:
            raise NotFoundError(idea_id)
        try:
            return IdeaTranslator.to_domain(row)
        except ValueError as e:
            logger.error(f"Corrupt row for {idea_id!r}: {e}")
            raise UnavailableError(f"Corrupt row for {idea_id!r} in the ideas table.") from e

    async def save(self, idea: Idea) -> None:
        async with self._transaction(idea.id, "Idea already exists.") as conn:
            await conn.execute(insert(ideas_table).values(IdeaTranslator.to_record(idea)))

    async def update(self, idea: Idea) -> Idea:
        persisted = idea.model_copy(update={'version': idea.version + 1})
        record = IdeaTranslator.to_record(persisted)
        del record['id']

        async with self._transaction(idea.id, f"Update of version {idea.version} violated a constraint.") as conn:
            stmt = (
                update(ideas_table)
                .where(ideas_table.c.id == idea.id)
                .where(ideas_table.c.version == idea.version)
                .values(record)
            )
            result = await conn.execute(stmt)

            if result.rowcount == 0:
                # Nothing matched: either the row is gone or its version moved on.
                existing = await conn.execute(
                    select(ideas_table.c.version).where(ideas_table.c.id == idea.id)
                )
                if existing.first() is None:
                    raise NotFoundError(idea.id)
                raise ConflictError(idea.id, f"Stale version {idea.version}.")

        return persisted

    async def delete(self, idea_id: str) -> None:
        async with self._transaction(idea_id) as conn:
            result = await conn.execute(delete(ideas_table).where(ideas_table.c.id == idea_id))
            if result.rowcount == 0:
                raise NotFoundError(idea_id)

    async def list_ids(self) -> List[str]:
        async with self._transaction() as conn:
            result = await conn.execute(select(ideas_table.c.id).order_by(ideas_table.c.id))
            return list(result.scalars().all())
