"""Review synchronization: keep persisted reviews in step with source data.

Reviews are regenerated, never patched. Every write that can change what a
review shows (answers, groupings, an event's activity list or current
activity) is followed by a refresh of the affected participants' reviews.
Those refreshes run after the response has been sent through
``ReviewRefresher``, which logs failures instead of raising them: a review
that failed to refresh is rebuilt by the next refresh, by the periodic sweep,
or lazily on the next read.
"""
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from icebreaker.core.errors import NotFoundError
from icebreaker.models import Event, GroupActivity, Review, ReviewDraft, User
from icebreaker.review.builder import build_review

logger = logging.getLogger(__name__)


def get_review(session: Session, user_id: str, event_id: str) -> Review | None:
    return session.exec(
        select(Review).where(Review.user_id == user_id).where(Review.event_id == event_id)
    ).first()


def upsert_review(session: Session, draft: ReviewDraft) -> Review:
    """
    Insert or overwrite the review for ``(draft.user_id, draft.event_id)``.

    On update only the event summary, the activities and ``updated_at``
    change; ``created_at`` and the review id are kept. If another writer
    inserts the same review first, the unique constraint rejects our insert
    and the write is retried as an update.
    """
    now = datetime.now(UTC)
    review = get_review(session, draft.user_id, draft.event_id)

    if review is None:
        review = Review(user_id=draft.user_id, event_id=draft.event_id, created_at=now)
        review.apply(draft)
        review.updated_at = now
        session.add(review)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info(
                f"Review for user {draft.user_id} in event {draft.event_id} "
                "was inserted concurrently, updating instead"
            )
            review = get_review(session, draft.user_id, draft.event_id)
            if review is None:
                raise
        else:
            session.refresh(review)
            return review

    review.apply(draft)
    review.updated_at = now
    session.add(review)
    session.commit()
    session.refresh(review)
    return review


def refresh_review(session: Session, user_id: str, event_id: str) -> Review:
    """Rebuild and store the review of one participant. Raises on failure."""
    draft = build_review(session, user_id, event_id)
    review = upsert_review(session, draft)
    logger.debug(f"Refreshed review for user {user_id} in event {event_id}")
    return review


def get_or_create_review(session: Session, user_id: str, event_id: str) -> Review:
    """
    Return the stored review, building it first if there is none.

    The first read of a review that was never refreshed pays for building it.
    """
    review = get_review(session, user_id, event_id)
    if review is not None:
        return review

    logger.info(f"No review for user {user_id} in event {event_id}, generating")
    refresh_review(session, user_id, event_id)

    review = get_review(session, user_id, event_id)
    if review is None:
        raise NotFoundError("Review", f"{user_id}/{event_id}")
    return review


def delete_review(session: Session, user_id: str, event_id: str) -> bool:
    """Delete a participant's review. Returns False if there was none."""
    review = get_review(session, user_id, event_id)
    if review is None:
        return False
    session.delete(review)
    session.commit()
    return True


def group_mate_ids(session: Session, user_id: str, activity_id: str) -> list[str]:
    """Ids of the other members of ``user_id``'s group for an activity."""
    grouping = session.exec(
        select(GroupActivity).where(GroupActivity.activity_id == activity_id)
    ).first()
    if not grouping:
        return []
    group = grouping.group_of(user_id)
    if not group:
        return []
    return [uid for uid in group.member_ids() if uid != user_id]


class ReviewRefresher:
    """Refreshes reviews outside the request that caused them to change.

    Each refresh opens its own session from ``session_factory``, and each
    participant is refreshed independently so one failure does not stop the
    others. Failures are logged, never raised.

    Instances are meant to be handed to FastAPI ``BackgroundTasks``:

        background_tasks.add_task(refresher.refresh_users, user_ids, event_id)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def refresh_quietly(self, user_id: str, event_id: str) -> bool:
        """Refresh one review, logging instead of raising. Returns success."""
        try:
            with self.session_factory() as session:
                refresh_review(session, user_id, event_id)
            return True
        except Exception:
            logger.exception(f"Failed to refresh review for user {user_id} in event {event_id}")
            return False

    def refresh_users(self, user_ids: list[str], event_id: str) -> dict:
        """
        Refresh the reviews of several participants of one event.

        Returns dict with refresh statistics.
        """
        stats = {"refreshed": 0, "failed": 0}
        for user_id in dict.fromkeys(user_ids):
            if self.refresh_quietly(user_id, event_id):
                stats["refreshed"] += 1
            else:
                stats["failed"] += 1

        if stats["failed"]:
            logger.warning(f"Review refresh for event {event_id}: {stats}")
        else:
            logger.info(f"Review refresh for event {event_id}: {stats}")
        return stats

    def refresh_event(self, event_id: str) -> dict:
        """Refresh the review of every participant registered to an event."""
        try:
            with self.session_factory() as session:
                user_ids = participant_ids(session, event_id)
        except Exception:
            logger.exception(f"Failed to load participants of event {event_id}")
            return {"refreshed": 0, "failed": 0}
        return self.refresh_users(user_ids, event_id)

    def refresh_answer_owner(self, user_id: str, activity_id: str, event_id: str) -> dict:
        """Refresh the reviews affected by a change to one answer.

        That is the owner's review and, for grouped activities, the reviews
        of the owner's group-mates, which show the answer as their partner's.
        """
        user_ids = [user_id]
        try:
            with self.session_factory() as session:
                user_ids.extend(group_mate_ids(session, user_id, activity_id))
        except Exception:
            logger.exception(f"Failed to load group of user {user_id} for activity {activity_id}")
        return self.refresh_users(user_ids, event_id)


def participant_ids(session: Session, event_id: str) -> list[str]:
    """Ids of the users currently registered to an event."""
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    registered = set(session.exec(select(User.id).where(User.event_id == event_id)).all())
    # Roster order first, then registered users missing from the roster
    ordered = [uid for uid in event.participant_ids if uid in registered]
    ordered.extend(sorted(registered.difference(ordered)))
    return ordered
