"""Activity model for prompts within an event.

Activities come in three kinds. ``individual`` prompts are answered alone;
``partner`` and ``group`` prompts are answered after the participants have
been grouped, and a participant's review shows their partner's answer next
to their own. Rows written by older clients use ``self`` for individual
prompts, which is accepted everywhere an individual kind is.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlmodel import Field, SQLModel


class ActivityKind(str, Enum):
    INDIVIDUAL = "individual"
    PARTNER = "partner"
    GROUP = "group"
    SELF = "self"  # legacy spelling of individual


PAIRED_KINDS = frozenset({ActivityKind.PARTNER.value, ActivityKind.GROUP.value})


def normalize_kind(kind: str) -> str:
    """Map legacy kinds onto the current three-valued kind."""
    if kind == ActivityKind.SELF.value:
        return ActivityKind.INDIVIDUAL.value
    return kind


def is_paired_kind(kind: str) -> bool:
    """True for kinds whose answers are shared within a group."""
    return normalize_kind(kind) in PAIRED_KINDS


class ActivityBase(SQLModel):
    title: str = ""
    question: str = Field(min_length=1)
    note_placeholder: str = ""
    save_enabled: bool = True


class Activity(ActivityBase, table=True):
    """One prompt within an event.

    Activities are immutable once created; deleting one also removes it
    from its event's activity list.

    Attributes:
        id: Opaque string identifier, optionally chosen by the client.
        event_id: Parent event. Legacy activities may have none.
        type: Activity kind, see ``ActivityKind``.
        title: Short title shown above the prompt.
        question: The prompt text.
        note_placeholder: Placeholder text for the answer box.
        save_enabled: Whether participants may save an answer.
        created_at: Creation timestamp.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_id: str | None = Field(default=None, index=True)
    type: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ActivityCreate(ActivityBase):
    type: ActivityKind
    id: str | None = None
    event_id: str | None = None
