"""Participant routes."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from icebreaker.core.auth import Principal, ensure_self_or_admin, get_current_principal
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_refresher
from icebreaker.core.errors import NotFoundError
from icebreaker.models import Event, User
from icebreaker.models.user import UserUpdate
from icebreaker.review.sync import ReviewRefresher, delete_review

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def get_user_or_404(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    return get_user_or_404(session, user_id)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """
    Update the caller's display name, icon or description.

    Group-mates' reviews show this profile, so the event's reviews are
    refreshed.
    """
    ensure_self_or_admin(principal, user_id, "edit a profile")
    user = get_user_or_404(session, user_id)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)

    session.add(user)
    session.commit()
    session.refresh(user)

    background_tasks.add_task(refresher.refresh_event, user.event_id)
    return user


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Remove a participant.

    The user leaves the event's participant list and their review is
    deleted. Their answers stay, and so does their place in existing
    groupings until the activity is regrouped.
    """
    ensure_self_or_admin(principal, user_id, "leave an event")
    user = get_user_or_404(session, user_id)
    event_id = user.event_id

    event = session.get(Event, event_id)
    if event and event.remove_participant(user_id):
        session.add(event)

    session.delete(user)
    session.commit()

    delete_review(session, user_id, event_id)
    logger.info(f"User {user_id} removed from event {event_id}")
    return {"success": True}
