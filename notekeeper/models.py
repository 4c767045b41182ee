from sqlalchemy import BigInteger, Column, Integer, String, Text

from notekeeper.db import Base
from notekeeper.schemas import DEFAULT_CATEGORY, Note, from_epoch_ms, to_epoch_ms


class NoteRecord(Base):
    """SQLAlchemy model representing a persisted note (timestamps in epoch ms)."""
    __tablename__ = "notes"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default=DEFAULT_CATEGORY)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    def to_note(self) -> Note:
        return Note(
            id=self.id,
            title=self.title,
            content=self.content,
            category=self.category,
            created_at=from_epoch_ms(self.created_at),
            updated_at=from_epoch_ms(self.updated_at),
        )

    def apply(self, note: Note) -> None:
        """Copy the mutable fields of `note` onto this row."""
        self.title = note.title
        self.content = note.content
        self.category = note.category
        self.updated_at = to_epoch_ms(note.updated_at)

    @classmethod
    def from_note(cls, note: Note) -> "NoteRecord":
        return cls(
            title=note.title,
            content=note.content,
            category=note.category,
            created_at=to_epoch_ms(note.created_at),
            updated_at=to_epoch_ms(note.updated_at),
        )
