import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SessionKind = Literal["focus", "break"]


class FocusSessionCreate(BaseModel):
    duration_minutes: int = Field(ge=0, le=1440)
    task_label: str | None = Field(default=None, max_length=500)
    kind: SessionKind = "focus"
    completed_at: datetime | None = None


class FocusSessionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    task_label: str | None
    duration_minutes: int
    kind: str
    completed_at: datetime

    model_config = {"from_attributes": True}
