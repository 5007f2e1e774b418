"""Tests for realtime channels and notifications."""

import asyncio

import pytest

from icebreaker.realtime import ChannelNotReadyError, EventChannel, RealtimeNotifier


class FakeSocket:
    """Minimal stand-in for a connected WebSocket."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(message)


def run(coro):
    return asyncio.run(coro)


class TestEventChannel:
    """Tests for per-event rooms."""

    def test_broadcast_reaches_only_the_event_room(self):
        channel = EventChannel()
        in_room, other_room = FakeSocket(), FakeSocket()
        channel.join("E1", in_room)
        channel.join("E2", other_room)

        sent = run(channel.broadcast("E1", "groupsCreated", {"eventId": "E1"}))

        assert sent == 1
        assert in_room.messages == [{"event": "groupsCreated", "data": {"eventId": "E1"}}]
        assert other_room.messages == []

    def test_broadcast_without_subscribers(self):
        assert run(EventChannel().broadcast("E1", "activityUpdate", {})) == 0

    def test_dead_socket_is_dropped(self):
        channel = EventChannel()
        alive, dead = FakeSocket(), FakeSocket(fail=True)
        channel.join("E1", alive)
        channel.join("E1", dead)
        channel.join("E2", dead)

        sent = run(channel.broadcast("E1", "activityUpdate", {}))

        assert sent == 1
        assert channel.subscriber_count("E1") == 1
        assert channel.subscriber_count("E2") == 0
        assert "E2" not in channel.rooms

    def test_leave_single_room(self):
        channel = EventChannel()
        socket = FakeSocket()
        channel.join("E1", socket)
        channel.join("E2", socket)

        channel.leave(socket, "E1")

        assert channel.subscriber_count("E1") == 0
        assert channel.subscriber_count("E2") == 1
        assert channel.subscriber_count() == 1


class TestRealtimeNotifier:
    """Tests for notification helpers."""

    def test_unbound_notifier_does_not_raise(self):
        notifier = RealtimeNotifier()

        assert notifier.ready is False
        assert run(notifier.notify_groups_created("E1", "A1")) is False
        with pytest.raises(ChannelNotReadyError):
            notifier.channel

    def test_bind(self):
        notifier = RealtimeNotifier()
        notifier.bind(EventChannel())
        assert notifier.ready is True
        notifier.unbind()
        assert notifier.ready is False

    def test_activity_changed_payload(self):
        channel = EventChannel()
        socket = FakeSocket()
        channel.join("E1", socket)

        assert run(RealtimeNotifier(channel).notify_activity_changed("E1", "A1")) is True
        assert socket.messages == [
            {"event": "activityUpdate", "data": {"eventId": "E1", "activityId": "A1"}}
        ]

    def test_partner_note_payload(self):
        channel = EventChannel()
        socket = FakeSocket()
        channel.join("E1", socket)

        run(RealtimeNotifier(channel).notify_partner_note_updated("E1", "A1", "U1", "hi"))

        assert socket.messages == [
            {
                "event": "partnerNoteUpdated",
                "data": {"activityId": "A1", "userId": "U1", "notes": "hi"},
            }
        ]

    def test_review_visibility(self):
        channel = EventChannel()
        socket = FakeSocket()
        channel.join("E1", socket)
        notifier = RealtimeNotifier(channel)

        run(notifier.notify_review_visibility("E1", True))
        run(notifier.notify_review_visibility("E1", False))

        assert [m["event"] for m in socket.messages] == ["reviewOn", "reviewOff"]
        for message in socket.messages:
            assert set(message["data"]) == {"eventId", "message", "timestamp"}
            assert message["data"]["eventId"] == "E1"

    def test_broadcast_failure_is_swallowed(self):
        class BrokenChannel(EventChannel):
            async def broadcast(self, event_id, event_name, payload):
                raise ConnectionError("transport down")

        assert run(RealtimeNotifier(BrokenChannel()).notify_groups_created("E1", "A1")) is False
