"""Persisted record collections.

Each collection is a key-addressed set of one record kind backed by a table.
Writes validate every record first, then run in their own transaction; an
awaited write has been committed when it returns.
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, Iterator, Optional, TypeVar, Union

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from planner.errors import DuplicateKeyError, InvalidInputError, NotFoundError, PersistenceError, RecordValidationError
from planner.logging_config import log_context
from planner.models import Base
from planner.records import Record
from planner.validators import validate_record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

# Stay well below SQLite's bound-parameter limit for IN (...) clauses.
_KEY_CHUNK = 500


def _chunks(keys: list[str], size: int = _KEY_CHUNK) -> Iterator[list[str]]:
    for start in range(0, len(keys), size):
        yield keys[start:start + size]


class Collection(Generic[R]):
    def __init__(
        self,
        name: str,
        model: type[Base],
        schema: type[R],
        sessions: async_sessionmaker[AsyncSession],
        key_field: str = "id",
    ):
        self.name = name
        self.model = model
        self.schema = schema
        self.key_field = key_field
        self._sessions = sessions
        self._columns = [attr.key for attr in model.__mapper__.column_attrs]

    def __repr__(self) -> str:
        return f"Collection({self.name!r})"

    @property
    def _key_column(self):
        return getattr(self.model, self.key_field)

    def key_of(self, record: R) -> str:
        return getattr(record, self.key_field)

    # -- row mapping --

    def _to_record(self, row: Base) -> R:
        return self.schema.model_validate({col: getattr(row, col) for col in self._columns})

    def _to_row(self, record: R) -> Base:
        return self.model(**record.model_dump(mode="json"))

    def validated(self, data: Any) -> R:
        result = validate_record(self.schema, data)
        if not result.ok:
            raise RecordValidationError(self.name, list(result.errors))
        return result.value

    @asynccontextmanager
    async def _session(self, write: bool = False) -> AsyncIterator[AsyncSession]:
        try:
            if write:
                async with self._sessions.begin() as session:
                    yield session
            else:
                async with self._sessions() as session:
                    yield session
        except SQLAlchemyError as exc:
            logger.exception("collection_io_failed", extra=log_context(collection=self.name, write=write))
            raise PersistenceError(self.name, str(exc)) from exc

    # -- reads --

    async def get(self, key: str) -> Optional[R]:
        async with self._session() as s:
            row = await s.get(self.model, key)
            return self._to_record(row) if row is not None else None

    async def has(self, key: str) -> bool:
        async with self._session() as s:
            found = await s.scalar(select(self._key_column).where(self._key_column == key))
            return found is not None

    async def all(self) -> list[R]:
        async with self._session() as s:
            rows = (await s.scalars(select(self.model).order_by(self._key_column))).all()
            return [self._to_record(r) for r in rows]

    async def filter_by(self, **criteria: Any) -> list[R]:
        async with self._session() as s:
            stmt = select(self.model).filter_by(**criteria).order_by(self._key_column)
            rows = (await s.scalars(stmt)).all()
            return [self._to_record(r) for r in rows]

    async def keys(self) -> set[str]:
        async with self._session() as s:
            return set((await s.scalars(select(self._key_column))).all())

    async def count(self) -> int:
        async with self._session() as s:
            return int(await s.scalar(select(func.count()).select_from(self.model)) or 0)

    # -- writes --

    async def insert(self, records: Union[R, Iterable[R]]) -> list[R]:
        """Insert one or many records; rejects the whole batch if any key already exists."""
        items = [records] if isinstance(records, Record) else list(records)
        validated = [self.validated(item) for item in items]
        if not validated:
            return []
        keys = [self.key_of(r) for r in validated]
        repeated = sorted(k for k, n in Counter(keys).items() if n > 1)
        if repeated:
            raise DuplicateKeyError(self.name, repeated)
        async with self._session(write=True) as s:
            existing: list[str] = []
            for chunk in _chunks(keys):
                existing.extend((await s.scalars(select(self._key_column).where(self._key_column.in_(chunk)))).all())
            if existing:
                raise DuplicateKeyError(self.name, sorted(existing))
            s.add_all([self._to_row(r) for r in validated])
        logger.debug("collection_insert", extra=log_context(collection=self.name, count=len(validated)))
        return validated

    async def update(self, key: str, **changes: Any) -> R:
        """Apply field changes to one record and return the validated result."""
        if self.key_field in changes and changes[self.key_field] != key:
            raise InvalidInputError(f"{self.name} key {self.key_field!r} cannot change")
        async with self._session(write=True) as s:
            row = await s.get(self.model, key)
            if row is None:
                raise NotFoundError(f"{self.name} record not found: {key}")
            merged = self._to_record(row).model_dump()
            merged.update(changes)
            record = self.validated(merged)
            for column, value in record.model_dump(mode="json").items():
                setattr(row, column, value)
        return record

    async def delete(self, keys: Union[str, Iterable[str]]) -> int:
        """Delete by key; keys that do not exist are ignored."""
        targets = [keys] if isinstance(keys, str) else list(dict.fromkeys(keys))
        if not targets:
            return 0
        deleted = 0
        async with self._session(write=True) as s:
            for chunk in _chunks(targets):
                result = await s.execute(delete(self.model).where(self._key_column.in_(chunk)))
                deleted += int(result.rowcount or 0)
        logger.debug("collection_delete", extra=log_context(collection=self.name, count=deleted))
        return deleted

    async def clear(self) -> int:
        async with self._session(write=True) as s:
            result = await s.execute(delete(self.model))
            return int(result.rowcount or 0)

    async def replace_all(self, records: Iterable[R]) -> list[R]:
        """Swap the whole collection for ``records`` in a single transaction."""
        validated = [self.validated(item) for item in records]
        keys = [self.key_of(r) for r in validated]
        repeated = sorted(k for k, n in Counter(keys).items() if n > 1)
        if repeated:
            raise DuplicateKeyError(self.name, repeated)
        async with self._session(write=True) as s:
            await s.execute(delete(self.model))
            s.add_all([self._to_row(r) for r in validated])
        return validated
