"""Group activity routes: pairing participants for an activity."""
from fastapi import APIRouter, BackgroundTasks, Body, Depends, Response
from sqlmodel import Session, select

from icebreaker.core.auth import Principal, get_current_principal, require_admin
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_notifier, get_refresher
from icebreaker.core.errors import NotFoundError
from icebreaker.models import GroupActivity
from icebreaker.models.group_activity import GroupingRequest
from icebreaker.realtime import RealtimeNotifier
from icebreaker.review.grouping import run_grouping
from icebreaker.review.sync import ReviewRefresher

router = APIRouter(prefix="/group-activities", tags=["group-activities"])


@router.get("/{group_activity_id}")
async def get_group_activity(
    group_activity_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    group_activity = session.get(GroupActivity, group_activity_id)
    if not group_activity:
        raise NotFoundError("Group activity", group_activity_id)
    return group_activity


@router.get("/activity/{activity_id}")
async def get_group_activity_for_activity(
    activity_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    group_activity = session.exec(
        select(GroupActivity).where(GroupActivity.activity_id == activity_id)
    ).first()
    if not group_activity:
        raise NotFoundError("Group activity for activity", activity_id)
    return group_activity


@router.post("/events/{event_id}/activities/{activity_id}")
async def create_groups(
    event_id: str,
    activity_id: str,
    response: Response,
    background_tasks: BackgroundTasks,
    payload: GroupingRequest | None = Body(default=None),
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """
    Pair every participant of the event for an activity.

    Returns 201 with the new grouping, or 200 when an existing grouping was
    replaced. Returns 404 (and writes nothing) if the event has no
    participants. Subscribers receive ``groupsCreated`` and every grouped
    participant's review is refreshed.
    """
    payload = payload or GroupingRequest()
    result = run_grouping(
        session, event_id, activity_id, share=payload.share, seed=payload.seed
    )

    await notifier.notify_groups_created(event_id, activity_id)
    background_tasks.add_task(refresher.refresh_users, result.participant_ids, event_id)

    response.status_code = 201 if result.created else 200
    return result.group_activity
