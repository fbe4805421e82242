import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.models.note import Note


async def get_notes(db: AsyncSession, user_id: uuid.UUID, tag: str | None = None) -> list[Note]:
    result = await db.execute(
        select(Note).where(Note.user_id == user_id).order_by(Note.updated_at.desc())
    )
    notes = list(result.scalars().all())
    # JSON containment differs between SQLite and Postgres, filter in Python
    if tag:
        notes = [n for n in notes if tag in (n.tags or [])]
    return notes


async def create_note(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Note:
    now = datetime.now(timezone.utc)
    note = Note(user_id=user_id, created_at=now, updated_at=now, **data)
    db.add(note)
    await db.flush()
    await db.refresh(note)
    return note


async def _get_owned(db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID) -> Note | None:
    result = await db.execute(
        select(Note).where(Note.id == note_id, Note.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def update_note(
    db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID, data: dict
) -> Note | None:
    note = await _get_owned(db, user_id, note_id)
    if note is None:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(note, key, value)
    note.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(note)
    return note


async def delete_note(db: AsyncSession, user_id: uuid.UUID, note_id: uuid.UUID) -> bool:
    note = await _get_owned(db, user_id, note_id)
    if note is None:
        return False
    await db.delete(note)
    await db.flush()
    return True
