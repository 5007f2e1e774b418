"""Review model: the denormalized per-participant summary of an event.

A Review is derived data. It is rebuilt from the event, its activities, the
answers and the groupings whenever any of them change, and it is never
edited in place. The document handed to clients uses camelCase keys:

    {reviewId, userId, eventId, createdAt, updatedAt,
     event: {name, description, picture},
     activities: [{activityId, type, title, question, selfAnswer,
                   partnerAnswer: {notes, name, icon, email, description} | null,
                   groupColor, groupNumber}]}
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


class ReviewDocumentModel(BaseModel):
    """Base for the camelCase parts of the review document."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventSummary(ReviewDocumentModel):
    name: str
    description: str
    picture: str | None = None


class PartnerAnswer(ReviewDocumentModel):
    notes: str | None = None
    name: str
    icon: str = ""
    email: str | None = None
    description: str = ""


class ReviewActivity(ReviewDocumentModel):
    activity_id: str
    type: str
    title: str
    question: str
    self_answer: str | None = None
    partner_answer: PartnerAnswer | None = None
    group_color: str | None = None
    group_number: int | None = None


class ReviewDraft(ReviewDocumentModel):
    """A freshly built review that has not been persisted yet."""
    user_id: str
    event_id: str
    event: EventSummary
    activities: list[ReviewActivity] = []


class Review(SQLModel, table=True):
    """The persisted review for one (user, event).

    Attributes:
        id: Opaque string identifier (``reviewId`` in the document).
        user_id: The participant the review belongs to.
        event_id: The reviewed event.
        created_at: Set on first insert, never changed afterwards.
        updated_at: Bumped on every refresh.
        event: Serialized ``EventSummary``.
        activities: Serialized ``ReviewActivity`` list in event order.
    """
    __table_args__ = (UniqueConstraint("user_id", "event_id"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    event_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    activities: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    def apply(self, draft: ReviewDraft) -> None:
        """Overwrite the derived fields from a freshly built draft."""
        self.event = draft.event.model_dump(by_alias=True)
        self.activities = [a.model_dump(by_alias=True) for a in draft.activities]

    def to_document(self) -> dict:
        return {
            "reviewId": self.id,
            "userId": self.user_id,
            "eventId": self.event_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "event": self.event,
            "activities": self.activities,
        }
