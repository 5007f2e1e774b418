"""Activity routes for managing event prompts."""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session, select

from icebreaker.core.auth import Principal, get_current_principal, require_admin
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_refresher
from icebreaker.core.errors import ConflictError, NotFoundError
from icebreaker.models import Activity, Event
from icebreaker.models.activity import ActivityCreate, normalize_kind
from icebreaker.review.sync import ReviewRefresher

router = APIRouter(prefix="/activities", tags=["activities"])


@router.post("", status_code=201)
async def create_activity(
    payload: ActivityCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """
    Create an activity.

    The id may be chosen by the client; reusing an existing id returns 409.
    When ``event_id`` is given the activity is appended to that event and
    the event's reviews are refreshed.
    """
    if payload.id and session.get(Activity, payload.id):
        raise ConflictError("Activity already exists")

    event = None
    if payload.event_id:
        event = session.get(Event, payload.event_id)
        if not event:
            raise NotFoundError("Event", payload.event_id)

    activity = Activity(
        event_id=payload.event_id,
        type=normalize_kind(payload.type.value),
        title=payload.title,
        question=payload.question,
        note_placeholder=payload.note_placeholder,
        save_enabled=payload.save_enabled,
    )
    if payload.id:
        activity.id = payload.id
    session.add(activity)

    if event and event.add_activity(activity.id):
        session.add(event)

    session.commit()
    session.refresh(activity)

    if event:
        background_tasks.add_task(refresher.refresh_event, event.id)
    return activity


@router.get("")
async def list_activities(
    event_id: str | None = None,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """List activities, optionally only those of one event."""
    statement = select(Activity)
    if event_id:
        statement = statement.where(Activity.event_id == event_id)
    return session.exec(statement.order_by(Activity.created_at)).all()


@router.get("/{activity_id}")
async def get_activity(
    activity_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    activity = session.get(Activity, activity_id)
    if not activity:
        raise NotFoundError("Activity", activity_id)
    return activity


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """Delete an activity and detach it from its event."""
    activity = session.get(Activity, activity_id)
    if not activity:
        raise NotFoundError("Activity", activity_id)

    event = session.get(Event, activity.event_id) if activity.event_id else None
    if event and event.remove_activity(activity_id):
        session.add(event)

    session.delete(activity)
    session.commit()

    if event:
        background_tasks.add_task(refresher.refresh_event, event.id)
    return {"message": "Activity deleted"}
