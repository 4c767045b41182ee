import asyncio

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from notekeeper.drivers import sql
from notekeeper.drivers.sql import SqlDriver
from notekeeper.errors import ConfigError, StorageError
from notekeeper.schemas import Note, to_epoch_ms
from notekeeper.store import NoteStore


def _reopen(url):
    return NoteStore.open(SqlDriver.from_url(url))


def test_notes_survive_a_restart(sqlite_url):
    async def scenario():
        async with await _reopen(sqlite_url) as store:
            await store.add("Welcome", "Hi")
            await store.add("Todo", "Buy milk", category="Errands")
            await store.delete(1)
            await store.add("Later", "")
            await store.update(Note(id=2, title="Todo!", content="Buy milk", category="Errands"))
            before = store.snapshot()

        async with await _reopen(sqlite_url) as store:
            after = store.snapshot()
            next_id = await store.add("after restart", "x")
        return before, after, next_id

    before, after, next_id = asyncio.run(scenario())
    assert [note.model_dump() for note in after] == [note.model_dump() for note in before]
    assert [note.id for note in after] == [2, 3]
    assert after[0].category == "Errands"
    # Ids of deleted notes are not handed out again after a restart either.
    assert next_id == 4


def test_table_layout_uses_epoch_milliseconds(sqlite_url):
    async def scenario():
        async with await _reopen(sqlite_url) as store:
            note_id = await store.add("t", "c")
            note = await store.get_by_id(note_id)
            with store._driver.engine.connect() as conn:
                row = conn.execute(
                    text("SELECT id, title, content, category, created_at, updated_at FROM notes")
                ).one()
                columns = {col["name"] for col in inspect(conn).get_columns("notes")}
        return note, row, columns

    note, row, columns = asyncio.run(scenario())
    assert columns == {"id", "title", "content", "category", "created_at", "updated_at"}
    assert tuple(row) == (
        1, "t", "c", "General", to_epoch_ms(note.created_at), to_epoch_ms(note.updated_at)
    )


def test_storage_failure_propagates_without_emission(sqlite_url):
    async def scenario():
        async with await _reopen(sqlite_url) as store:
            await store.add("kept", "note")
            snapshots = []
            store.observe_all(snapshots.append)
            with store._driver.engine.begin() as conn:
                conn.execute(text("DROP TABLE notes"))

            with pytest.raises(StorageError) as create_error:
                await store.add("lost", "note")
            with pytest.raises(StorageError):
                await store.get_by_id(1)
            with pytest.raises(StorageError):
                await store.update(Note(id=1, title="changed", content="note"))
            with pytest.raises(StorageError):
                await store.delete(1)
            return store.snapshot(), snapshots, create_error.value

    notes, snapshots, error = asyncio.run(scenario())
    assert [note.title for note in notes] == ["kept"]
    assert len(snapshots) == 1
    assert error.__cause__ is not None


def test_in_memory_sqlite_url_shares_one_database():
    async def scenario():
        async with await _reopen("sqlite://") as store:
            await store.add("a", "b")
            return [note.title for note in store.snapshot()], await store.get_by_id(1)

    titles, note = asyncio.run(scenario())
    assert titles == ["a"]
    assert note.title == "a"


def test_invalid_url_is_a_config_error():
    with pytest.raises(ConfigError):
        SqlDriver.from_url("not a url")


def test_write_publishes_without_a_separate_reload(sqlite_url):
    async def failing_load_all():
        raise StorageError("read failed")

    async def scenario():
        async with await _reopen(sqlite_url) as store:
            store._driver.load_all = failing_load_all
            note_id = await store.add("a", "b")
            live = [note.title for note in store.snapshot()]
        async with await _reopen(sqlite_url) as store:
            persisted = [note.title for note in store.snapshot()]
        return note_id, live, persisted

    note_id, live, persisted = asyncio.run(scenario())
    assert note_id == 1
    assert live == ["a"]
    assert persisted == ["a"]


class _EngineStub:
    disposed = False

    def dispose(self):
        self.disposed = True


def test_schema_failure_disposes_the_engine(monkeypatch):
    def broken_schema(engine):
        raise OperationalError("CREATE TABLE notes", {}, Exception("disk I/O error"))

    monkeypatch.setattr(sql, "create_schema", broken_schema)
    engine = _EngineStub()

    with pytest.raises(StorageError, match="Could not create notes schema"):
        SqlDriver(engine)
    assert engine.disposed
