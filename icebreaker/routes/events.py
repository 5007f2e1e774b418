"""Event routes for managing icebreaker sessions and their participants."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session, SQLModel, select

from icebreaker.core.auth import (
    Principal,
    ensure_self_or_admin,
    get_current_principal,
    require_admin,
)
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_notifier, get_refresher
from icebreaker.core.errors import ConflictError, NotFoundError, ValidationFailure
from icebreaker.models import Activity, Event, User
from icebreaker.models.event import EventCreate, EventUpdate
from icebreaker.models.user import UserCreate
from icebreaker.realtime import RealtimeNotifier
from icebreaker.review.sync import ReviewRefresher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


class CurrentActivityUpdate(SQLModel):
    activity_id: str | None = None


class ReviewVisibilityUpdate(SQLModel):
    show_review: bool


def get_event_or_404(session: Session, event_id: str) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    return event


@router.post("", status_code=201)
async def create_event(
    payload: EventCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
):
    """Create an open event with no activities or participants."""
    event = Event(name=payload.name, description=payload.description, picture=payload.picture)
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"Event {event.id} created by {principal.uid}")
    return event


@router.get("")
async def list_events(
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    return session.exec(select(Event)).all()


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    return get_event_or_404(session, event_id)


@router.get("/{event_id}/status")
async def event_status(
    event_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """Return whether an event is open, for the join screen."""
    event = get_event_or_404(session, event_id)
    return {"name": event.name, "open": event.open}


@router.patch("/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """
    Update event fields.

    Only fields present in the request are changed, and an explicit null
    for ``open`` is rejected. Reviews embed the event name, description and
    picture, so they are refreshed when any of those change.
    """
    event = get_event_or_404(session, event_id)

    changes = payload.model_dump(exclude_unset=True)
    if "open" in changes and changes["open"] is None:
        raise ValidationFailure("open must be true or false")

    for key, value in changes.items():
        if key in ("name", "description") and not value:
            continue
        setattr(event, key, value)

    session.add(event)
    session.commit()
    session.refresh(event)

    if {"name", "description", "picture"} & changes.keys():
        background_tasks.add_task(refresher.refresh_event, event_id)
    return event


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
):
    event = get_event_or_404(session, event_id)
    session.delete(event)
    session.commit()
    return {"message": "Event deleted"}


@router.post("/{event_id}/activities/{activity_id}")
async def add_activity(
    event_id: str,
    activity_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """Attach an existing activity to an event and refresh all reviews."""
    event = get_event_or_404(session, event_id)
    activity = session.get(Activity, activity_id)
    if not activity:
        raise NotFoundError("Activity", activity_id)

    if activity.event_id is None:
        activity.event_id = event_id
        session.add(activity)
    if event.add_activity(activity_id):
        session.add(event)
    session.commit()
    session.refresh(event)

    background_tasks.add_task(refresher.refresh_event, event_id)
    return event


@router.delete("/{event_id}/activities/{activity_id}")
async def remove_activity(
    event_id: str,
    activity_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """Detach an activity from an event and refresh all reviews."""
    event = get_event_or_404(session, event_id)
    if not event.remove_activity(activity_id):
        raise NotFoundError("Activity in event", activity_id)

    session.add(event)
    session.commit()
    session.refresh(event)

    background_tasks.add_task(refresher.refresh_event, event_id)
    return event


@router.put("/{event_id}/current-activity")
async def set_current_activity(
    event_id: str,
    payload: CurrentActivityUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """
    Set the activity currently shown to participants.

    The activity must belong to the event. Clearing it (``activity_id``
    null) is allowed. Subscribers receive ``activityUpdate``.
    """
    event = get_event_or_404(session, event_id)
    if payload.activity_id is not None and payload.activity_id not in event.activity_ids:
        raise HTTPException(status_code=400, detail="Activity does not belong to this event")

    event.current_activity_id = payload.activity_id
    session.add(event)
    session.commit()
    session.refresh(event)

    await notifier.notify_activity_changed(event_id, payload.activity_id)
    background_tasks.add_task(refresher.refresh_event, event_id)
    return event


@router.put("/{event_id}/review-visibility")
async def set_review_visibility(
    event_id: str,
    payload: ReviewVisibilityUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """Show or hide reviews. Subscribers receive ``reviewOn`` or ``reviewOff``."""
    event = get_event_or_404(session, event_id)
    event.show_review = payload.show_review
    session.add(event)
    session.commit()
    session.refresh(event)

    await notifier.notify_review_visibility(event_id, payload.show_review)
    return event


@router.get("/{event_id}/participants")
async def list_participants(
    event_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    participants = session.exec(select(User).where(User.event_id == event_id)).all()
    if not participants:
        raise HTTPException(status_code=404, detail="No participants found")
    return participants


@router.post("/{event_id}/participants", status_code=201)
async def join_event(
    event_id: str,
    payload: UserCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """
    Register the caller as a participant of an open event.

    The participant id defaults to the caller's uid. Joining twice returns
    409.
    """
    event = get_event_or_404(session, event_id)
    if not event.open:
        raise HTTPException(status_code=400, detail="Event is closed")

    user_id = payload.id or principal.uid
    ensure_self_or_admin(principal, user_id, "join an event")
    if session.get(User, user_id):
        raise ConflictError("User already registered")

    user = User(
        id=user_id,
        event_id=event_id,
        name=payload.name,
        email=payload.email,
        icon=payload.icon,
        description=payload.description,
    )
    event.add_participant(user_id)
    session.add(user)
    session.add(event)
    session.commit()
    session.refresh(user)

    background_tasks.add_task(refresher.refresh_quietly, user_id, event_id)
    return user
