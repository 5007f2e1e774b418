"""Grouping engine: partition an event's participants for one activity."""
import logging
import random
from dataclasses import dataclass, field
from uuid import uuid4

from sqlmodel import Session, select

from icebreaker.core.errors import EmptyPopulationError, NotFoundError
from icebreaker.models import Activity, Event, GroupActivity, GroupEntry, ParticipantSummary, User

logger = logging.getLogger(__name__)

GROUP_COLORS = ("red", "blue", "green", "yellow")
GROUP_SIZE = 2


def group_color(group_number: int) -> str:
    """Color for a 1-based group number, cycling through the palette."""
    return GROUP_COLORS[(group_number - 1) % len(GROUP_COLORS)]


def build_groups(
    participants: list[ParticipantSummary],
    group_size: int = GROUP_SIZE,
    rng: random.Random | None = None,
) -> list[GroupEntry]:
    """
    Shuffle participants and split them into consecutive groups.

    The shuffle is a uniform Fisher-Yates permutation. Groups hold
    ``group_size`` members except the last, which holds the remainder
    (a single participant when pairing an odd number of people). Each
    group gets a new id, its 1-based number and the palette color for it.

    Pass a seeded ``rng`` for a reproducible outcome; every call otherwise
    produces a new random grouping.
    """
    if group_size < 1:
        raise ValueError("group_size must be at least 1")

    shuffled = list(participants)
    (rng or random.Random()).shuffle(shuffled)

    groups = []
    for index, start in enumerate(range(0, len(shuffled), group_size)):
        number = index + 1
        groups.append(
            GroupEntry(
                group_id=str(uuid4()),
                group_number=number,
                group_color=group_color(number),
                participants=shuffled[start:start + group_size],
            )
        )
    return groups


@dataclass
class GroupingResult:
    """Outcome of a grouping run."""
    group_activity: GroupActivity
    created: bool
    participant_ids: list[str] = field(default_factory=list)


def run_grouping(
    session: Session,
    event_id: str,
    activity_id: str,
    share: bool | None = None,
    seed: int | None = None,
) -> GroupingResult:
    """
    Group every participant of an event for one activity.

    Creates the activity's GroupActivity, or replaces the groups of the
    existing one in place (its id is kept, and so is ``share`` unless a new
    value is given). The activity is added to the event's activity list.

    Raises NotFoundError if the event or activity does not exist, and
    EmptyPopulationError (writing nothing) if the event has no participants.

    The caller is responsible for notifying clients and refreshing the
    reviews of ``participant_ids``.
    """
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    if not session.get(Activity, activity_id):
        raise NotFoundError("Activity", activity_id)

    users = session.exec(
        select(User).where(User.event_id == event_id).order_by(User.id)
    ).all()
    if not users:
        raise EmptyPopulationError(event_id)

    rng = random.Random(seed) if seed is not None else None
    groups = build_groups([u.summary() for u in users], rng=rng)

    existing = session.exec(
        select(GroupActivity).where(GroupActivity.activity_id == activity_id)
    ).first()

    if existing:
        group_activity = existing
        if share is not None:
            group_activity.share = share
        created = False
    else:
        group_activity = GroupActivity(activity_id=activity_id, share=bool(share))
        created = True

    group_activity.set_groups(groups)
    group_activity.active = True
    session.add(group_activity)

    if event.add_activity(activity_id):
        session.add(event)

    session.commit()
    session.refresh(group_activity)

    logger.info(
        f"{'Created' if created else 'Regrouped'} {len(groups)} groups for activity "
        f"{activity_id} in event {event_id}"
    )
    return GroupingResult(
        group_activity=group_activity,
        created=created,
        participant_ids=[u.id for u in users],
    )
