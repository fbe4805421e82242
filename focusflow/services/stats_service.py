import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.models.focus_session import FocusSession
from focusflow.models.task import Task
from focusflow.models.user import User


def _period_start(period: str, now: datetime) -> datetime:
    if period == "daily":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "monthly":
        return now - timedelta(days=30)
    return now - timedelta(days=7)


async def get_stats(
    db: AsyncSession,
    user_id: uuid.UUID,
    period: str = "weekly",
) -> dict:
    now = datetime.now(timezone.utc)
    start = _period_start(period, now)

    # Focus/break aggregates
    result = await db.execute(
        select(
            FocusSession.kind,
            func.coalesce(func.sum(FocusSession.duration_minutes), 0).label("minutes"),
            func.count(FocusSession.id).label("session_count"),
        ).where(
            FocusSession.user_id == user_id,
            FocusSession.completed_at >= start,
        ).group_by(FocusSession.kind)
    )
    by_kind = {row.kind: row for row in result.all()}
    focus_row = by_kind.get("focus")
    break_row = by_kind.get("break")

    # Tasks created in the period, and how many of those are done
    task_result = await db.execute(
        select(
            func.count(Task.id).label("created"),
            func.coalesce(
                func.sum(case((Task.completed == True, 1), else_=0)), 0  # noqa: E712
            ).label("completed"),
        ).where(
            Task.user_id == user_id,
            Task.created_at >= start,
        )
    )
    task_row = task_result.one()

    # Daily breakdown using date() function (works on both SQLite and Postgres)
    date_expr = func.date(FocusSession.completed_at)
    daily_result = await db.execute(
        select(
            date_expr.label("day"),
            func.sum(FocusSession.duration_minutes).label("focus_minutes"),
            func.count(FocusSession.id).label("session_count"),
        ).where(
            FocusSession.user_id == user_id,
            FocusSession.kind == "focus",
            FocusSession.completed_at >= start,
        ).group_by(
            date_expr
        ).order_by(
            date_expr
        )
    )
    daily = [
        {
            "date": str(d.day),
            "focus_minutes": d.focus_minutes or 0,
            "session_count": d.session_count,
        }
        for d in daily_result.all()
    ]

    user = await db.get(User, user_id)
    streak = await calculate_streak(db, user_id)

    return {
        "period": period,
        "focus_minutes": focus_row.minutes if focus_row else 0,
        "focus_session_count": focus_row.session_count if focus_row else 0,
        "break_session_count": break_row.session_count if break_row else 0,
        "tasks_created": task_row.created or 0,
        "tasks_completed": task_row.completed or 0,
        "total_focus_time": user.total_focus_time if user else 0,
        "current_streak": streak,
        "daily_breakdown": daily,
    }


async def calculate_streak(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Calculate consecutive days with completed focus sessions ending today."""
    date_expr = func.date(FocusSession.completed_at)
    result = await db.execute(
        select(
            date_expr.label("session_date"),
        ).where(
            FocusSession.user_id == user_id,
            FocusSession.kind == "focus",
        ).group_by(
            date_expr
        ).order_by(
            date_expr.desc()
        )
    )
    raw_dates = [row.session_date for row in result.all()]

    if not raw_dates:
        return 0

    # Parse string dates from SQLite or date objects from Postgres
    dates = []
    for d in raw_dates:
        if isinstance(d, str):
            dates.append(date.fromisoformat(d))
        elif isinstance(d, date):
            dates.append(d)

    today = datetime.now(timezone.utc).date()
    streak = 0
    expected = today

    for d in dates:
        if d == expected:
            streak += 1
            expected -= timedelta(days=1)
        elif d < expected:
            break

    return streak


async def refresh_streak(db: AsyncSession, user: User) -> User:
    """Store the current focus streak on the profile."""
    streak = await calculate_streak(db, user.id)
    if user.current_streak != streak:
        user.current_streak = streak
        await db.flush()
        await db.refresh(user)
    return user
