"""Event model for icebreaker sessions.

An Event is the unit participants join. It owns the ordered list of its
activity ids (the order reviews are rendered in), the set of registered
participant ids, and the admin-controlled flags that drive the live session:
whether it is open, which activity is currently on screen, and whether
participants may see their review.
"""

from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class EventBase(SQLModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    picture: str | None = None


class Event(EventBase, table=True):
    """An icebreaker session containing activities and participants.

    Attributes:
        id: Opaque string identifier.
        name: Display name of the event.
        description: Free-text description shown to participants.
        picture: Optional picture URL.
        activity_ids: Ids of the activities in this event, without
            duplicates. Reviews list activities in this order.
        open: Whether participants may still join.
        participant_ids: Ids of the users registered to this event.
        current_activity_id: The activity currently shown to participants.
        show_review: Whether participants may view their review.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    activity_ids: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    open: bool = Field(default=True)
    participant_ids: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    current_activity_id: str | None = None
    show_review: bool = Field(default=False)

    def add_activity(self, activity_id: str) -> bool:
        """Add an activity id if absent. Returns True if the set changed."""
        if activity_id in self.activity_ids:
            return False
        # Reassign so SQLAlchemy sees the JSON column change
        self.activity_ids = [*self.activity_ids, activity_id]
        return True

    def remove_activity(self, activity_id: str) -> bool:
        """Remove an activity id if present. Returns True if the set changed."""
        if activity_id not in self.activity_ids:
            return False
        self.activity_ids = [a for a in self.activity_ids if a != activity_id]
        if self.current_activity_id == activity_id:
            self.current_activity_id = None
        return True

    def add_participant(self, user_id: str) -> bool:
        if user_id in self.participant_ids:
            return False
        self.participant_ids = [*self.participant_ids, user_id]
        return True

    def remove_participant(self, user_id: str) -> bool:
        if user_id not in self.participant_ids:
            return False
        self.participant_ids = [p for p in self.participant_ids if p != user_id]
        return True


class EventCreate(EventBase):
    pass


class EventUpdate(SQLModel):
    name: str | None = None
    description: str | None = None
    picture: str | None = None
    open: bool | None = None
