from nightout.models.user import User, UserPreferences
from nightout.models.event import Event, EventCategory, EventSource
from nightout.models.rsvp import RSVP, RSVPStatus
from nightout.models.comment import Comment
from nightout.models.friendship import Friendship, FriendshipStatus
from nightout.models.invite import EventInvite, InviteStatus
from nightout.models.session import PasswordResetToken, Session
from nightout.models.notification import Notification, NotificationType
from nightout.models.bookmark import Bookmark
from nightout.models.block import Block

__all__ = [
    "User", "UserPreferences",
    "Event", "EventCategory", "EventSource",
    "RSVP", "RSVPStatus",
    "Comment",
    "Friendship", "FriendshipStatus",
    "EventInvite", "InviteStatus",
    "Session", "PasswordResetToken",
    "Notification", "NotificationType",
    "Bookmark",
    "Block",
]
