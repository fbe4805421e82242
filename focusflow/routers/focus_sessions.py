from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.database import get_db
from focusflow.dependencies import get_current_user
from focusflow.models.user import User
from focusflow.schemas.focus_session import FocusSessionCreate, FocusSessionResponse
from focusflow.services import focus_session_service

router = APIRouter(prefix="/focus-sessions", tags=["focus-sessions"])


@router.get("", response_model=list[FocusSessionResponse])
async def list_focus_sessions(
    kind: str | None = Query(default=None, pattern="^(focus|break)$"),
    since: datetime | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await focus_session_service.get_focus_sessions(
        db, user.id, kind=kind, since=since, limit=limit, offset=offset,
    )


@router.post("", response_model=FocusSessionResponse, status_code=201)
async def create_focus_session(
    data: FocusSessionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await focus_session_service.create_focus_session(db, user.id, data.model_dump())
