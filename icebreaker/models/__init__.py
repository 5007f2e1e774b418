from icebreaker.models.activity import Activity, ActivityKind
from icebreaker.models.event import Event
from icebreaker.models.group_activity import GroupActivity, GroupEntry
from icebreaker.models.review import Review, ReviewActivity, ReviewDraft
from icebreaker.models.user import ParticipantSummary, Role, User
from icebreaker.models.user_activity import UserActivity

__all__ = [
    "Activity",
    "ActivityKind",
    "Event",
    "GroupActivity",
    "GroupEntry",
    "ParticipantSummary",
    "Review",
    "ReviewActivity",
    "ReviewDraft",
    "Role",
    "User",
    "UserActivity",
]
