from nightout.schemas.common import MessageResponse, Page
from nightout.schemas.user import UserCreate, UserLogin, UserResponse, UserSummary
from nightout.schemas.auth import AuthResponse, TokenPair
from nightout.schemas.event import EventResponse, EventWithRSVP, RSVPRequest
from nightout.schemas.comment import CommentCreate, CommentResponse

__all__ = [
    "MessageResponse", "Page",
    "UserCreate", "UserLogin", "UserResponse", "UserSummary",
    "AuthResponse", "TokenPair",
    "EventResponse", "EventWithRSVP", "RSVPRequest",
    "CommentCreate", "CommentResponse",
]
