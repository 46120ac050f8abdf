"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter, Depends

from nightout.api.deps import general_limit
from nightout.api.routes import (
    artists,
    auth,
    blocks,
    bookmarks,
    events,
    invites,
    notifications,
    places,
    social,
    users,
)
from nightout.core.config import get_settings

settings = get_settings()

api_router = APIRouter(prefix=settings.API_PREFIX, dependencies=[Depends(general_limit)])
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(events.router)
api_router.include_router(social.router)
api_router.include_router(invites.router)
api_router.include_router(artists.router)
api_router.include_router(places.router)
api_router.include_router(notifications.router)
api_router.include_router(blocks.router)
api_router.include_router(bookmarks.router)
