from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CATEGORY = "General"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# PUBLIC_INTERFACE
def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


# PUBLIC_INTERFACE
def to_epoch_ms(value: datetime) -> int:
    """Convert an aware datetime to integer epoch milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


# PUBLIC_INTERFACE
def from_epoch_ms(value: int) -> datetime:
    """Convert integer epoch milliseconds back to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=int(value))


class Note(BaseModel):
    """
    Immutable note record.

    `id` stays None until a store assigns one. Timestamps default to "now" so a
    freshly built note is usable on its own, but stores overwrite them on write.
    """
    model_config = ConfigDict(frozen=True)

    id: int | None = Field(None, description="Store-assigned identifier.")
    title: str = Field(..., description="Note title, may be empty.")
    content: str = Field(..., description="Note body, may be empty.")
    category: str = Field(DEFAULT_CATEGORY, description="Free-form category label.")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time (UTC).")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update time (UTC).")

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return DEFAULT_CATEGORY if value is None else value

    @property
    def is_blank(self) -> bool:
        """True when both title and content are empty or whitespace."""
        return not self.title.strip() and not self.content.strip()
