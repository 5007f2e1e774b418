"""Answer routes: participants' responses to activities.

Every write refreshes the affected reviews in the background and tells the
event's subscribers that a partner note changed (except on delete).
"""
from datetime import UTC, datetime

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from icebreaker.core.auth import Principal, get_current_principal, require_admin
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_notifier, get_refresher
from icebreaker.core.errors import AuthorizationError, ConflictError, NotFoundError
from icebreaker.core.sanitize import validate_notes
from icebreaker.models import Activity, User, UserActivity
from icebreaker.models.user_activity import UserActivityCreate, UserActivityUpdate
from icebreaker.realtime import RealtimeNotifier
from icebreaker.review.sync import ReviewRefresher

router = APIRouter(prefix="/user-activities", tags=["user-activities"])


def ensure_owner(principal: Principal, user_id: str) -> None:
    if principal.uid != user_id:
        raise AuthorizationError("You can only write your own notes")


def get_participant(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def get_answer(session: Session, user_id: str, activity_id: str) -> UserActivity | None:
    return session.exec(
        select(UserActivity)
        .where(UserActivity.user_id == user_id)
        .where(UserActivity.activity_id == activity_id)
    ).first()


@router.post("", status_code=201)
async def create_user_activity(
    payload: UserActivityCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
    refresher: ReviewRefresher = Depends(get_refresher),
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """
    Submit an answer.

    Notes are stripped of markup before storage. A participant can answer
    each activity once; a second submission returns 409 and leaves the first
    answer unchanged.
    """
    ensure_owner(principal, payload.user_id)
    notes = validate_notes(payload.notes)

    user = get_participant(session, payload.user_id)
    if not session.get(Activity, payload.activity_id):
        raise NotFoundError("Activity", payload.activity_id)
    if get_answer(session, payload.user_id, payload.activity_id):
        raise ConflictError("User has already submitted a response for this activity")

    answer = UserActivity(
        activity_id=payload.activity_id,
        user_id=payload.user_id,
        group_id=payload.group_id,
        notes=notes,
    )
    session.add(answer)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("User has already submitted a response for this activity")
    session.refresh(answer)

    await notifier.notify_partner_note_updated(
        user.event_id, answer.activity_id, answer.user_id, answer.notes
    )
    background_tasks.add_task(
        refresher.refresh_answer_owner, answer.user_id, answer.activity_id, user.event_id
    )
    return answer


@router.get("")
async def list_user_activities(
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
):
    return session.exec(select(UserActivity)).all()


@router.get("/users/{user_id}/activities/{activity_id}")
async def get_user_activity(
    user_id: str,
    activity_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    answer = get_answer(session, user_id, activity_id)
    if not answer:
        raise NotFoundError("UserActivity", f"{user_id}/{activity_id}")
    return answer


@router.put("/users/{user_id}/activities/{activity_id}")
async def update_user_activity(
    user_id: str,
    activity_id: str,
    payload: UserActivityUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
    refresher: ReviewRefresher = Depends(get_refresher),
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """Edit an answer's notes (sanitized) and group."""
    ensure_owner(principal, user_id)
    notes = validate_notes(payload.notes)

    answer = get_answer(session, user_id, activity_id)
    if not answer:
        raise NotFoundError("UserActivity", f"{user_id}/{activity_id}")
    user = get_participant(session, user_id)

    answer.notes = notes
    answer.group_id = payload.group_id
    answer.date = datetime.now(UTC)
    session.add(answer)
    session.commit()
    session.refresh(answer)

    await notifier.notify_partner_note_updated(user.event_id, activity_id, user_id, answer.notes)
    background_tasks.add_task(refresher.refresh_answer_owner, user_id, activity_id, user.event_id)
    return answer


@router.delete("/users/{user_id}/activities/{activity_id}")
async def delete_user_activity(
    user_id: str,
    activity_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    ensure_owner(principal, user_id)
    answer = get_answer(session, user_id, activity_id)
    if not answer:
        raise NotFoundError("UserActivity", f"{user_id}/{activity_id}")
    user = session.get(User, user_id)

    session.delete(answer)
    session.commit()

    if user:
        background_tasks.add_task(
            refresher.refresh_answer_owner, user_id, activity_id, user.event_id
        )
    return {"message": "UserActivity deleted"}
