from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.database import get_db
from focusflow.dependencies import get_current_user
from focusflow.models.user import User
from focusflow.schemas.auth import (
    EmailLoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from focusflow.services import auth_service, stats_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a new account with email and password."""
    try:
        user = await auth_service.register_user(
            db=db,
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    tokens = auth_service.issue_tokens(user.id)
    return TokenResponse(**tokens)


@router.post("/login", response_model=TokenResponse)
async def login(request: EmailLoginRequest, db: AsyncSession = Depends(get_db)):
    """Sign in with email and password."""
    try:
        user = await auth_service.login_with_email(
            db=db,
            email=request.email,
            password=request.password,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    tokens = auth_service.issue_tokens(user.id)
    return TokenResponse(**tokens)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(request: RefreshRequest, req: Request):
    """Rotate refresh token and issue new access + refresh pair."""
    redis_client = getattr(req.app.state, "redis", None)
    try:
        tokens = await auth_service.refresh_tokens(request.refresh_token, redis_client)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )
    return TokenResponse(**tokens)


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the currently authenticated user."""
    return await stats_service.refresh_streak(db, user)
