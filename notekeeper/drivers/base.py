from abc import ABC, abstractmethod

from notekeeper.schemas import Note


class StorageDriver(ABC):
    """
    Storage capability a note store runs on.

    Drivers persist notes exactly as given; ids are the driver's job, every
    other rule (validation, timestamps, serialization of writes) belongs to
    the store. Note lists are ordered by id ascending. Each write returns the
    full list as it stands after that write, read in the same unit of work,
    so a committed write always comes with its snapshot.
    """

    @abstractmethod
    async def load_all(self) -> list[Note]:
        ...

    @abstractmethod
    async def get(self, note_id: int) -> Note | None:
        ...

    @abstractmethod
    async def insert(self, note: Note) -> tuple[Note, list[Note]]:
        """Store a new note; return it with its assigned id, and the new list."""

    @abstractmethod
    async def replace(self, note: Note) -> list[Note] | None:
        """Overwrite the row with `note.id`; None when there is none."""

    @abstractmethod
    async def remove(self, note_id: int) -> list[Note] | None:
        """Delete the row with `note_id`; None when there is none."""

    async def close(self) -> None:
        return None
