"""Review routes: reading and regenerating participant reviews."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from icebreaker.core.auth import Principal, get_current_principal, require_admin
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_refresher
from icebreaker.core.errors import AuthorizationError, NotFoundError
from icebreaker.core.scheduler import SweepState, sweep_reviews
from icebreaker.models import Event
from icebreaker.review.sync import ReviewRefresher, get_or_create_review, refresh_review

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/sweep/status")
async def sweep_status(principal: Principal = Depends(require_admin)):
    """Report the outcome of the last background review sweep."""
    status = SweepState.get_status()
    return {
        "last_run": status["last_run"].isoformat() if status["last_run"] else None,
        "success": status["success"],
        "error": status["error"],
        "stats": status["stats"],
    }


@router.post("/sweep")
async def trigger_sweep(
    principal: Principal = Depends(require_admin),
    refresher: ReviewRefresher = Depends(get_refresher),
):
    """Run the review sweep now and return its statistics."""
    return sweep_reviews(refresher)


@router.get("/{event_id}/users/{user_id}")
async def get_review(
    event_id: str,
    user_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal),
):
    """
    Return a participant's review, generating it if it does not exist yet.

    Participants can read their own review once the admin has made reviews
    visible; admins can read any review at any time.
    """
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)

    if not principal.email_verified:
        if principal.uid != user_id:
            raise AuthorizationError("You can only read your own review")
        if not event.show_review:
            raise AuthorizationError("Review is not available yet")

    return get_or_create_review(session, user_id, event_id).to_document()


@router.post("/{event_id}/users/{user_id}/refresh")
async def regenerate_review(
    event_id: str,
    user_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_admin),
):
    """Rebuild a participant's review now. Failures are returned to the caller."""
    return refresh_review(session, user_id, event_id).to_document()
