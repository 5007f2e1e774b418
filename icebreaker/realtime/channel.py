"""Per-event WebSocket rooms."""
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class EventChannel:
    """Rooms of WebSocket subscribers keyed by event id.

    Messages are JSON objects ``{"event": <name>, "data": <payload>}``.
    Delivery is best effort: a socket that fails to receive is dropped from
    every room, and nothing is kept for clients that connect later.
    """

    def __init__(self):
        # Map event_id -> set of websockets
        self.rooms: dict[str, set[WebSocket]] = {}

    def join(self, event_id: str, websocket: WebSocket) -> None:
        """Subscribe a connected socket to an event's room."""
        self.rooms.setdefault(event_id, set()).add(websocket)
        logger.info(f"Socket joined event {event_id} ({len(self.rooms[event_id])} subscribers)")

    def leave(self, websocket: WebSocket, event_id: str | None = None) -> None:
        """Unsubscribe a socket from one room, or from all rooms."""
        event_ids = [event_id] if event_id else list(self.rooms)
        for eid in event_ids:
            members = self.rooms.get(eid)
            if not members:
                continue
            members.discard(websocket)
            if not members:
                del self.rooms[eid]

    def subscriber_count(self, event_id: str | None = None) -> int:
        if event_id is not None:
            return len(self.rooms.get(event_id, ()))
        return len({ws for members in self.rooms.values() for ws in members})

    async def broadcast(self, event_id: str, event_name: str, payload: dict) -> int:
        """
        Send a message to every subscriber of an event.

        Returns the number of sockets the message was sent to.
        """
        members = self.rooms.get(event_id)
        if not members:
            logger.debug(f"No subscribers for event {event_id}, dropping {event_name}")
            return 0

        message = {"event": event_name, "data": payload}
        sent = 0
        disconnected = []
        for websocket in members.copy():
            try:
                await websocket.send_json(message)
                sent += 1
            except (RuntimeError, ConnectionError) as e:
                logger.warning(f"Connection closed for event {event_id}: {e}")
                disconnected.append(websocket)
            except Exception as e:
                logger.error(f"Failed to send {event_name} to event {event_id}: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.leave(websocket)
        return sent
