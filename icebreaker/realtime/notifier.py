"""Realtime notifications for event participants.

Notifications only tell clients that something changed; clients re-fetch
the state itself. They are advisory: a failed broadcast is logged and never
reaches the request that triggered it.

    activityUpdate       {eventId, activityId}        current activity changed
    groupsCreated        {eventId, activityId}        grouping (re)run
    partnerNoteUpdated   {activityId, userId, notes}  answer created or edited
    reviewOn / reviewOff {eventId, message, timestamp} review visibility toggled
"""
import logging
from datetime import UTC, datetime

from icebreaker.realtime.channel import EventChannel

logger = logging.getLogger(__name__)

ACTIVITY_UPDATE = "activityUpdate"
GROUPS_CREATED = "groupsCreated"
PARTNER_NOTE_UPDATED = "partnerNoteUpdated"
REVIEW_ON = "reviewOn"
REVIEW_OFF = "reviewOff"


class ChannelNotReadyError(RuntimeError):
    """The notifier was used before a channel was bound at startup."""


class RealtimeNotifier:
    """Broadcasts change notifications to an event's subscribers."""

    def __init__(self, channel: EventChannel | None = None):
        self._channel = channel

    def bind(self, channel: EventChannel) -> None:
        self._channel = channel

    def unbind(self) -> None:
        self._channel = None

    @property
    def ready(self) -> bool:
        return self._channel is not None

    @property
    def channel(self) -> EventChannel:
        if self._channel is None:
            raise ChannelNotReadyError("Realtime channel not initialized")
        return self._channel

    async def notify(self, event_id: str, event_name: str, payload: dict) -> bool:
        """Broadcast to an event's room. Returns False if the broadcast failed."""
        try:
            sent = await self.channel.broadcast(event_id, event_name, payload)
        except Exception as e:
            logger.error(f"Error emitting {event_name} to event {event_id}: {e}")
            return False
        logger.info(f"Emitted {event_name} to event {event_id} ({sent} subscribers)")
        return True

    async def notify_activity_changed(self, event_id: str, activity_id: str | None) -> bool:
        return await self.notify(
            event_id, ACTIVITY_UPDATE, {"eventId": event_id, "activityId": activity_id}
        )

    async def notify_groups_created(self, event_id: str, activity_id: str) -> bool:
        return await self.notify(
            event_id, GROUPS_CREATED, {"eventId": event_id, "activityId": activity_id}
        )

    async def notify_partner_note_updated(
        self, event_id: str, activity_id: str, user_id: str, notes: str
    ) -> bool:
        return await self.notify(
            event_id,
            PARTNER_NOTE_UPDATED,
            {"activityId": activity_id, "userId": user_id, "notes": notes},
        )

    async def notify_review_visibility(self, event_id: str, show_review: bool) -> bool:
        """Emit ``reviewOn`` or ``reviewOff`` for an event."""
        event_name = REVIEW_ON if show_review else REVIEW_OFF
        message = "Review is now available" if show_review else "Review has been hidden"
        return await self.notify(
            event_id,
            event_name,
            {
                "eventId": event_id,
                "message": message,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
