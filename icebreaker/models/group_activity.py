"""Grouping model: the pairing of participants for one activity."""

from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from icebreaker.models.user import ParticipantSummary


class GroupEntry(SQLModel):
    """One group in a grouping run."""
    group_id: str = Field(default_factory=lambda: str(uuid4()))
    group_number: int
    group_color: str
    participants: list[ParticipantSummary]

    def member_ids(self) -> list[str]:
        return [p.user_id for p in self.participants]

    def has_member(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    def partner_of(self, user_id: str) -> ParticipantSummary | None:
        """Return the participant this user is paired with.

        For groups of more than two the first other participant in group
        order is the partner.
        """
        return next((p for p in self.participants if p.user_id != user_id), None)


class GroupActivity(SQLModel, table=True):
    """The grouping assignment for one activity.

    Re-running the grouping replaces ``groups`` and ``active`` in place;
    the row id is stable.

    Attributes:
        id: Opaque string identifier.
        activity_id: The grouped activity (one grouping per activity).
        groups: Serialized ``GroupEntry`` list, in group-number order.
        active: Whether the grouping is in effect.
        share: Whether the groups are shown to participants.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    activity_id: str = Field(index=True, unique=True)
    groups: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    active: bool = Field(default=True)
    share: bool = Field(default=False)

    def group_entries(self) -> list[GroupEntry]:
        return [GroupEntry.model_validate(g) for g in self.groups]

    def set_groups(self, entries: list[GroupEntry]) -> None:
        self.groups = [g.model_dump(mode="json") for g in entries]

    def group_of(self, user_id: str) -> GroupEntry | None:
        """Return the group containing ``user_id``, if any."""
        return next((g for g in self.group_entries() if g.has_member(user_id)), None)


class GroupingRequest(SQLModel):
    share: bool | None = None
    seed: int | None = None
