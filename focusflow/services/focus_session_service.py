import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.models.focus_session import FocusSession

logger = logging.getLogger(__name__)


async def get_focus_sessions(
    db: AsyncSession,
    user_id: uuid.UUID,
    kind: str | None = None,
    since: datetime | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[FocusSession]:
    query = select(FocusSession).where(FocusSession.user_id == user_id)
    if kind:
        query = query.where(FocusSession.kind == kind)
    if since:
        query = query.where(FocusSession.completed_at >= since)
    query = query.order_by(FocusSession.completed_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_focus_session(db: AsyncSession, user_id: uuid.UUID, data: dict) -> FocusSession:
    completed_at = data.get("completed_at")
    if completed_at is None:
        data["completed_at"] = datetime.now(timezone.utc)
    elif completed_at.tzinfo is not None:
        data["completed_at"] = completed_at.astimezone(timezone.utc)
    session = FocusSession(user_id=user_id, **data)
    db.add(session)
    await db.flush()
    await db.refresh(session)
    logger.info(
        "Recorded %s session of %d min for user %s",
        session.kind, session.duration_minutes, user_id,
    )
    return session
