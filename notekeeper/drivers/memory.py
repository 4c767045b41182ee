from notekeeper.drivers.base import StorageDriver
from notekeeper.schemas import Note


class MemoryDriver(StorageDriver):
    """Process-local driver keeping notes in a dict keyed by id."""

    def __init__(self):
        self._notes: dict[int, Note] = {}
        self._last_id = 0

    def _ordered(self) -> list[Note]:
        return [self._notes[key] for key in sorted(self._notes)]

    async def load_all(self) -> list[Note]:
        return self._ordered()

    async def get(self, note_id: int) -> Note | None:
        return self._notes.get(note_id)

    async def insert(self, note: Note) -> tuple[Note, list[Note]]:
        # Ids are never reused, even after the note holding one is deleted.
        self._last_id += 1
        stored = note.model_copy(update={"id": self._last_id})
        self._notes[stored.id] = stored
        return stored, self._ordered()

    async def replace(self, note: Note) -> list[Note] | None:
        if note.id not in self._notes:
            return None
        self._notes[note.id] = note
        return self._ordered()

    async def remove(self, note_id: int) -> list[Note] | None:
        if self._notes.pop(note_id, None) is None:
            return None
        return self._ordered()
