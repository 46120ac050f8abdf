"""
Profile, preferences, location and user search.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import get_current_user, write_limit
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.user import (
    LocationUpdate,
    PreferencesResponse,
    PreferencesUpdate,
    ProfileUpdate,
    PublicProfile,
    UserResponse,
    UserSummary,
    UserWithPreferences,
)
from nightout.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserWithPreferences)
async def get_me(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    preferences = await user_service.get_preferences(db, user)
    return UserWithPreferences(
        **UserResponse.model_validate(user).model_dump(),
        preferences=PreferencesResponse.model_validate(preferences),
    )


@router.patch("/me", response_model=UserResponse, dependencies=[Depends(write_limit)])
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_profile(db, user, data)


@router.patch("/me/preferences", response_model=PreferencesResponse, dependencies=[Depends(write_limit)])
async def update_my_preferences(
    data: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. Saving preferences completes onboarding."""
    return await user_service.update_preferences(db, user, data)


@router.patch("/me/location", response_model=UserResponse)
async def update_my_location(
    data: LocationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_location(db, user, data)


@router.get("/search", response_model=list[UserSummary])
async def search(
    q: str = Query(..., min_length=1, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.search_users(db, user.id, q)


@router.get("/{user_id}", response_model=PublicProfile)
async def get_profile(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)
