"""Realtime routes: event subscriptions over WebSocket."""
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect

from icebreaker.core.deps import get_notifier
from icebreaker.realtime import RealtimeNotifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws/events/{event_id}")
async def event_socket(
    websocket: WebSocket,
    event_id: str,
    notifier: RealtimeNotifier = Depends(get_notifier),
):
    """
    Subscribe to an event's notifications.

    The socket joins the event in the path. Clients can join further events
    by sending ``{"type": "joinEvent", "eventId": "<id>"}``; other JSON
    messages are ignored. Binary frames and text that is not JSON close the
    socket with code 1003.
    """
    if not notifier.ready:
        await websocket.close(code=1013)
        return

    channel = notifier.channel
    await websocket.accept()
    channel.join(event_id, websocket)
    try:
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("type") == "joinEvent" and message.get("eventId"):
                channel.join(str(message["eventId"]), websocket)
                await websocket.send_json({"event": "joined", "data": {"eventId": message["eventId"]}})
    except WebSocketDisconnect as e:
        logger.info(f"Socket left event {event_id} (code {e.code})")
    except (ValueError, KeyError) as e:
        # KeyError: a binary frame has no "text" part
        logger.warning(f"Closing socket for event {event_id}: invalid message ({e!r})")
        await websocket.close(code=1003)
    finally:
        channel.leave(websocket)


@router.get("/realtime/status")
async def realtime_status(notifier: RealtimeNotifier = Depends(get_notifier)):
    """Report whether the realtime channel is running and how many clients it has."""
    if not notifier.ready:
        raise HTTPException(status_code=503, detail="Realtime channel not initialized")
    return {
        "status": "running",
        "connected_clients": notifier.channel.subscriber_count(),
        "rooms": len(notifier.channel.rooms),
    }
