from icebreaker.realtime.channel import EventChannel
from icebreaker.realtime.notifier import ChannelNotReadyError, RealtimeNotifier

__all__ = ["ChannelNotReadyError", "EventChannel", "RealtimeNotifier"]
