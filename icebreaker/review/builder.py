"""Review builder: assemble a participant's review from source data.

The review of a participant lists every activity of their event in event
order with their own answer, and for partner and group activities the group
they were placed in and their partner's answer. Everything is read in a
handful of batch queries:

    1. the participant and the event
    2. the event's activities, the participant's answers, and the groupings
       of paired activities
    3. the partners' answers and partner user rows

so the number of queries does not grow with the number of activities.
"""
import logging

from sqlmodel import Session, col, select

from icebreaker.core.errors import NotFoundError
from icebreaker.models import Activity, Event, GroupActivity, User, UserActivity
from icebreaker.models.activity import is_paired_kind, normalize_kind
from icebreaker.models.review import EventSummary, PartnerAnswer, ReviewActivity, ReviewDraft

logger = logging.getLogger(__name__)


def _event_summary(event: Event) -> EventSummary:
    return EventSummary(
        name=event.name,
        description=event.description,
        picture=event.picture or None,
    )


def build_review(session: Session, user_id: str, event_id: str) -> ReviewDraft:
    """
    Build the review of ``user_id`` for ``event_id`` without persisting it.

    Raises NotFoundError if the event does not exist or the user is not
    registered to it. A missing partner answer leaves ``partnerAnswer.notes``
    as None.
    """
    user = session.exec(
        select(User).where(User.id == user_id).where(User.event_id == event_id)
    ).first()
    event = session.get(Event, event_id)

    if not user:
        raise NotFoundError("User in event", user_id)
    if not event:
        raise NotFoundError("Event", event_id)

    activity_ids = list(event.activity_ids or [])
    if not activity_ids:
        return ReviewDraft(user_id=user_id, event_id=event_id, event=_event_summary(event))

    # Batch fetch activities and this user's answers
    activities = session.exec(
        select(Activity).where(col(Activity.id).in_(activity_ids))
    ).all()
    answers = session.exec(
        select(UserActivity)
        .where(UserActivity.user_id == user_id)
        .where(col(UserActivity.activity_id).in_(activity_ids))
    ).all()

    activity_map = {a.id: a for a in activities}
    answer_map = {a.activity_id: a for a in answers}

    # Groupings are only needed for partner and group activities
    paired_ids = [a.id for a in activities if is_paired_kind(a.type)]
    grouping_map: dict[str, GroupActivity] = {}
    if paired_ids:
        groupings = session.exec(
            select(GroupActivity).where(col(GroupActivity.activity_id).in_(paired_ids))
        ).all()
        grouping_map = {g.activity_id: g for g in groupings}

    entries: list[ReviewActivity] = []
    partner_by_activity: dict[str, str] = {}

    for activity_id in activity_ids:
        activity = activity_map.get(activity_id)
        if not activity:
            # Listed on the event but deleted since
            logger.debug(f"Skipping missing activity {activity_id} in event {event_id}")
            continue

        answer = answer_map.get(activity_id)
        entry = ReviewActivity(
            activity_id=activity.id,
            type=normalize_kind(activity.type),
            title=activity.title,
            question=activity.question,
            self_answer=(answer.notes or None) if answer else None,
        )

        grouping = grouping_map.get(activity_id)
        if is_paired_kind(activity.type) and grouping:
            group = grouping.group_of(user_id)
            if group:
                entry.group_color = group.group_color
                entry.group_number = group.group_number

                partner = group.partner_of(user_id)
                if partner:
                    entry.partner_answer = PartnerAnswer(
                        notes=None,
                        name=partner.name,
                        icon=partner.icon,
                        email=partner.email,
                        description=partner.description,
                    )
                    partner_by_activity[activity_id] = partner.user_id

        entries.append(entry)

    if partner_by_activity:
        _fill_partner_answers(session, entries, partner_by_activity, activity_ids)

    return ReviewDraft(
        user_id=user_id,
        event_id=event_id,
        event=_event_summary(event),
        activities=entries,
    )


def _fill_partner_answers(
    session: Session,
    entries: list[ReviewActivity],
    partner_by_activity: dict[str, str],
    activity_ids: list[str],
) -> None:
    """Second batch pass: partners' notes and current profiles."""
    partner_ids = sorted(set(partner_by_activity.values()))

    partner_answers = session.exec(
        select(UserActivity)
        .where(col(UserActivity.user_id).in_(partner_ids))
        .where(col(UserActivity.activity_id).in_(activity_ids))
    ).all()
    partner_users = session.exec(select(User).where(col(User.id).in_(partner_ids))).all()

    answer_map = {(a.user_id, a.activity_id): a for a in partner_answers}
    user_map = {u.id: u for u in partner_users}

    for entry in entries:
        partner_id = partner_by_activity.get(entry.activity_id)
        if not partner_id or not entry.partner_answer:
            continue

        answer = answer_map.get((partner_id, entry.activity_id))
        if answer:
            entry.partner_answer.notes = answer.notes

        # Current profile wins; the grouping snapshot covers deleted users
        partner_user = user_map.get(partner_id)
        if partner_user:
            entry.partner_answer.name = partner_user.name
            entry.partner_answer.icon = partner_user.icon
            entry.partner_answer.email = partner_user.email
            entry.partner_answer.description = partner_user.description
