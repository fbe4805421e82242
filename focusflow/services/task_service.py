import uuid
from datetime import datetime, timezone

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.models.task import Task

PRIORITY_RANK = case(
    (Task.priority == "urgent", 0),
    (Task.priority == "medium", 1),
    else_=2,
)


async def get_tasks(
    db: AsyncSession,
    user_id: uuid.UUID,
    completed: bool | None = None,
) -> list[Task]:
    query = select(Task).where(Task.user_id == user_id)
    if completed is not None:
        query = query.where(Task.completed == completed)
    query = query.order_by(Task.completed.asc(), PRIORITY_RANK, Task.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_task(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Task:
    task = Task(user_id=user_id, completed=False, **data)
    db.add(task)
    await db.flush()
    await db.refresh(task)
    return task


async def _get_owned(db: AsyncSession, user_id: uuid.UUID, task_id: uuid.UUID) -> Task | None:
    result = await db.execute(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def update_task(
    db: AsyncSession, user_id: uuid.UUID, task_id: uuid.UUID, data: dict
) -> Task | None:
    task = await _get_owned(db, user_id, task_id)
    if task is None:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(task, key, value)
    task.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(task)
    return task


async def delete_task(db: AsyncSession, user_id: uuid.UUID, task_id: uuid.UUID) -> bool:
    task = await _get_owned(db, user_id, task_id)
    if task is None:
        return False
    await db.delete(task)
    await db.flush()
    return True
