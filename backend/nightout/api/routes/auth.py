"""
Authentication endpoints: register, login, token refresh, logout and
password reset.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import auth_limit, get_client_ip, get_current_user, get_device_info, login_limit
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LogoutRequest,
    RefreshRequest,
    ResetPasswordRequest,
    TokenPair,
)
from nightout.schemas.common import MessageResponse
from nightout.schemas.user import UserCreate, UserLogin, UserResponse
from nightout.services import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_limit)],
)
async def register(user_data: UserCreate, request: Request, db: AsyncSession = Depends(get_db)):
    """Register a new user account and sign it in."""
    user, tokens = await auth_service.register_user(
        db, user_data, get_device_info(request), get_client_ip(request)
    )
    return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_limit)])
async def login(login_data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive an access/refresh token pair."""
    user, tokens = await auth_service.authenticate_user(
        db, login_data, get_device_info(request), get_client_ip(request)
    )
    return AuthResponse(user=UserResponse.model_validate(user), tokens=tokens)


@router.post("/refresh", response_model=TokenPair)
async def refresh(body: RefreshRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Rotate a refresh token. The presented token stops working."""
    return await auth_service.refresh_tokens(
        db, body.refresh_token, get_device_info(request), get_client_ip(request)
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: LogoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.logout(db, user.id, body.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse, dependencies=[Depends(auth_limit)])
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    message = await auth_service.forgot_password(db, body.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse, dependencies=[Depends(auth_limit)])
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(db, body.token, body.password)
    return MessageResponse(message="Password has been reset successfully")


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
