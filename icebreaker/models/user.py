"""Participant model.

A User row is a participant's registration in one event. Group entries
carry a ``ParticipantSummary`` copy of the fields other participants see.
"""

from enum import Enum
from uuid import uuid4

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class ParticipantSummary(SQLModel):
    """The part of a participant shown to their group."""
    user_id: str
    name: str
    icon: str = ""
    description: str = ""
    email: str | None = None


class UserBase(SQLModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    icon: str = ""
    description: str = ""


class User(UserBase, table=True):
    """A participant registered to an event.

    Attributes:
        id: Opaque string identifier, usually the identity provider uid.
        event_id: The event this participant joined.
        name: Display name.
        email: Contact email, shown to partners in the review.
        icon: Avatar identifier.
        description: Free-text self description.
        role: ``admin`` or ``user``.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_id: str = Field(index=True)
    role: str = Field(default=Role.USER.value)

    def summary(self) -> ParticipantSummary:
        return ParticipantSummary(
            user_id=self.id,
            name=self.name,
            icon=self.icon,
            description=self.description,
            email=self.email,
        )


class UserCreate(UserBase):
    id: str | None = None


class UserUpdate(SQLModel):
    name: str | None = None
    icon: str | None = None
    description: str | None = None
