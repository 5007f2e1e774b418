"""Answer model: one participant's response to one activity."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class UserActivity(SQLModel, table=True):
    """A participant's answer to an activity.

    There is at most one answer per (user, activity). Notes are stored
    after markup has been stripped.

    Attributes:
        id: Opaque string identifier.
        activity_id: The answered activity.
        user_id: The answering participant.
        group_id: The group the participant was in when answering, if any.
        notes: Sanitized answer text.
        date: When the answer was last written.
    """
    __table_args__ = (UniqueConstraint("user_id", "activity_id"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    activity_id: str = Field(index=True)
    user_id: str = Field(index=True)
    group_id: str | None = None
    notes: str
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))


class UserActivityCreate(SQLModel):
    activity_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    notes: str = Field(min_length=1)
    group_id: str | None = None


class UserActivityUpdate(SQLModel):
    notes: str = Field(min_length=1)
    group_id: str | None = None
