"""Dependencies wiring shared services into routes."""
from fastapi import HTTPException
from starlette.requests import HTTPConnection

from icebreaker.core.database import session_factory
from icebreaker.realtime import RealtimeNotifier
from icebreaker.review.sync import ReviewRefresher


def get_refresher() -> ReviewRefresher:
    """Dependency returning the background review refresher."""
    return ReviewRefresher(session_factory())


def get_notifier(conn: HTTPConnection) -> RealtimeNotifier:
    """Dependency returning the application's realtime notifier.

    The notifier is created with the application; its channel is bound
    during startup.
    """
    notifier = getattr(conn.app.state, "notifier", None)
    if notifier is None:
        raise HTTPException(status_code=503, detail="Realtime notifier not configured")
    return notifier
