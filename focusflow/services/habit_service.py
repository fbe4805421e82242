import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.models.habit import Habit


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


async def get_habits(db: AsyncSession, user_id: uuid.UUID, day: date | None = None) -> list[Habit]:
    """Habits logged on the given UTC calendar day (today by default)."""
    start, end = _day_bounds(day or datetime.now(timezone.utc).date())
    result = await db.execute(
        select(Habit)
        .where(Habit.user_id == user_id, Habit.date >= start, Habit.date < end)
        .order_by(Habit.name.asc())
    )
    return list(result.scalars().all())


async def create_habit(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Habit:
    habit = Habit(user_id=user_id, date=datetime.now(timezone.utc), **data)
    db.add(habit)
    await db.flush()
    await db.refresh(habit)
    return habit


async def update_habit(
    db: AsyncSession, user_id: uuid.UUID, habit_id: uuid.UUID, data: dict
) -> Habit | None:
    result = await db.execute(
        select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
    )
    habit = result.scalar_one_or_none()
    if habit is None:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(habit, key, value)

    await db.flush()
    await db.refresh(habit)
    return habit
