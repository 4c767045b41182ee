import asyncio
import logging
from typing import Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notekeeper.db import create_schema, make_engine, make_session_factory
from notekeeper.drivers.base import StorageDriver
from notekeeper.errors import StorageError
from notekeeper.models import NoteRecord
from notekeeper.schemas import Note

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SqlDriver(StorageDriver):
    """
    Driver persisting notes in the `notes` table through SQLAlchemy.

    Each call opens a short session in a worker thread and commits before
    returning. Writes read back the full list inside their own transaction.
    Any SQLAlchemy failure rolls the transaction back and is raised as
    StorageError.
    """

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        if create_tables:
            try:
                create_schema(engine)
            except SQLAlchemyError as exc:
                engine.dispose()
                raise StorageError(f"Could not create notes schema: {exc}") from exc

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlDriver":
        return cls(make_engine(database_url, echo=echo))

    async def _run(self, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, work)

    def _run_sync(self, work: Callable[[Session], T]) -> T:
        try:
            with self._session_factory() as session, session.begin():
                return work(session)
        except SQLAlchemyError as exc:
            raise StorageError(f"Notes storage failure: {exc}") from exc

    @staticmethod
    def _select_all(session: Session) -> list[Note]:
        session.flush()
        rows = session.scalars(select(NoteRecord).order_by(NoteRecord.id)).all()
        return [row.to_note() for row in rows]

    async def load_all(self) -> list[Note]:
        return await self._run(self._select_all)

    async def get(self, note_id: int) -> Note | None:
        def _get(session: Session) -> Note | None:
            row = session.get(NoteRecord, note_id)
            return row.to_note() if row else None

        return await self._run(_get)

    async def insert(self, note: Note) -> tuple[Note, list[Note]]:
        def _insert(session: Session) -> tuple[Note, list[Note]]:
            row = NoteRecord.from_note(note)
            session.add(row)
            session.flush()
            return row.to_note(), self._select_all(session)

        return await self._run(_insert)

    async def replace(self, note: Note) -> list[Note] | None:
        def _replace(session: Session) -> list[Note] | None:
            row = session.get(NoteRecord, note.id)
            if row is None:
                return None
            row.apply(note)
            return self._select_all(session)

        return await self._run(_replace)

    async def remove(self, note_id: int) -> list[Note] | None:
        def _remove(session: Session) -> list[Note] | None:
            row = session.get(NoteRecord, note_id)
            if row is None:
                return None
            session.delete(row)
            return self._select_all(session)

        return await self._run(_remove)

    async def close(self) -> None:
        await asyncio.to_thread(self.engine.dispose)
        logger.debug("Disposed engine for %s", self.engine.url.render_as_string(hide_password=True))
