"""
Note repository.

`NoteStore` owns the note collection through a `StorageDriver` and is the only
component that writes to it. Writes are serialized by one lock per store and
every committed write publishes a fresh snapshot (notes ordered by id) to the
store's observers before the lock is released.
"""

import asyncio
from datetime import datetime, timedelta
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from notekeeper.drivers.base import StorageDriver
from notekeeper.errors import StoreClosedError, ValidationError
from notekeeper.observable import LiveValue, Subscription
from notekeeper.schemas import Note, utc_now

T = TypeVar("T")

Snapshot = tuple[Note, ...]

_TICK = timedelta(milliseconds=1)


class NoteStore:
    def __init__(self, driver: StorageDriver, clock: Callable[[], datetime] = utc_now):
        self._driver = driver
        self._clock = clock
        self._live: LiveValue[Snapshot] = LiveValue(())
        self._write_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def open(cls, driver: StorageDriver, clock: Callable[[], datetime] = utc_now) -> "NoteStore":
        """Build a store and load the driver's current notes as the first snapshot."""
        store = cls(driver, clock=clock)
        store._live.publish(tuple(await driver.load_all()))
        return store

    async def __aenter__(self) -> "NoteStore":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # PUBLIC_INTERFACE
    def observe_all(self, callback: Callable[[Snapshot], None]) -> Subscription:
        """
        Subscribe to the full note list.

        `callback` runs immediately with the current snapshot, then once per
        committed create/update/delete, in the order the writes were applied.
        """
        return self._live.subscribe(callback)

    # PUBLIC_INTERFACE
    def changes(self) -> AsyncIterator[Snapshot]:
        """Async iterator form of `observe_all`."""
        return self._live.stream()

    # PUBLIC_INTERFACE
    def snapshot(self) -> list[Note]:
        """Current note list, ordered by id."""
        return list(self._live.value)

    # PUBLIC_INTERFACE
    async def get_by_id(self, note_id: int) -> Note | None:
        """Return the note with `note_id`, or None when there is none."""
        self._ensure_open()
        return await self._driver.get(note_id)

    # PUBLIC_INTERFACE
    async def create(self, note: Note) -> int:
        """
        Store `note` as a new note and return its id.

        Any id or timestamps on `note` are ignored: the store assigns a fresh
        id and sets created_at == updated_at == now. A note whose title and
        content are both blank raises ValidationError and changes nothing.
        """
        self._ensure_open()
        if note.is_blank:
            raise ValidationError("A note needs a title or content", fields=("title", "content"))

        async def _create() -> tuple[int, list[Note]]:
            now = self._clock()
            stored, notes = await self._driver.insert(
                note.model_copy(update={"id": None, "created_at": now, "updated_at": now})
            )
            return stored.id, notes

        return await self._write(_create)

    # PUBLIC_INTERFACE
    async def add(self, title: str, content: str, category: str | None = None) -> int:
        """Create a note from its parts; see `create`."""
        return await self.create(Note(title=title, content=content, category=category))

    # PUBLIC_INTERFACE
    async def update(self, note: Note) -> Note | None:
        """
        Replace title, content and category of the stored note with `note.id`.

        Returns the stored note, or None (no change, no emission) when no such
        note exists. created_at is kept; updated_at is set to now and always
        moves forward, whatever the caller put in `note.updated_at`.
        """
        if note.id is None:
            self._ensure_open()
            return None

        async def _update() -> tuple[Note | None, list[Note] | None]:
            current = await self._driver.get(note.id)
            if current is None:
                return None, None
            stored = current.model_copy(update={
                "title": note.title,
                "content": note.content,
                "category": note.category,
                "updated_at": max(self._clock(), current.updated_at + _TICK),
            })
            notes = await self._driver.replace(stored)
            if notes is None:
                return None, None
            return stored, notes

        return await self._write(_update)

    # PUBLIC_INTERFACE
    async def delete(self, target: int | Note) -> bool:
        """Delete a note given its id or the note itself; False when absent."""
        note_id = target.id if isinstance(target, Note) else target
        if note_id is None:
            self._ensure_open()
            return False

        async def _delete() -> tuple[bool, list[Note] | None]:
            notes = await self._driver.remove(note_id)
            return notes is not None, notes

        return await self._write(_delete)

    # PUBLIC_INTERFACE
    async def close(self) -> None:
        """
        Wait for in-flight writes, then release the driver. Idempotent.

        Open `changes()` iterators end; callback subscriptions stop receiving.
        """
        async with self._write_lock:
            if self._closed:
                return
            self._closed = True
        self._live.close()
        await self._driver.close()

    async def _write(self, operation: Callable[[], Awaitable[tuple[T, list[Note] | None]]]) -> T:
        self._ensure_open()
        # Shielded: a caller that gives up mid-write does not cut the write short.
        return await asyncio.shield(self._serialized(operation))

    async def _serialized(self, operation: Callable[[], Awaitable[tuple[T, list[Note] | None]]]) -> T:
        async with self._write_lock:
            self._ensure_open()
            result, notes = await operation()
            if notes is not None:
                self._live.publish(tuple(notes))
            return result

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Note store is closed")

    def __len__(self) -> int:
        return len(self._live.value)
