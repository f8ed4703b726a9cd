"""
Authentication endpoints: register, login, profile.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_booking.db.session import get_db
from event_booking.schemas.user import (
    AuthResponse, EmailCheck, EmailCheckResponse, MessageResponse,
    UserCreate, UserLogin, UserResponse,
)
from event_booking.services.auth_service import (
    authenticate_user, get_user, get_user_by_email, issue_token, register_user,
)
from event_booking.core.security import get_current_user_id

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account and sign them in."""
    user = await register_user(db, user_data)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        access_token=issue_token(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    user = await authenticate_user(db, login_data)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        access_token=issue_token(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, user_id)


@router.post("/logout", response_model=MessageResponse)
async def logout(user_id: int = Depends(get_current_user_id)):
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logged out successfully")


@router.post("/check-email", response_model=EmailCheckResponse)
async def check_email(payload: EmailCheck, db: AsyncSession = Depends(get_db)):
    user = await get_user_by_email(db, payload.email)
    return EmailCheckResponse(exists=user is not None, name=user.name if user else None)
