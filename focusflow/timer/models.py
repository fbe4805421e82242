from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# Lengths offered by the timer settings, in minutes
FOCUS_LENGTHS = (15, 25, 30, 45, 60)
BREAK_LENGTHS = (5, 10, 15, 20)
DEFAULT_FOCUS_MINUTES = 25
DEFAULT_BREAK_MINUTES = 5
DEFAULT_MAX_SESSIONS = 4
DEFAULT_TASK_LABEL = "Focus Session"


class SessionKind(str, Enum):
    FOCUS = "focus"
    BREAK = "break"


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class SessionRun:
    """One countdown cycle, owned by a single controller."""

    duration_seconds: int
    remaining_seconds: int
    kind: SessionKind = SessionKind.FOCUS
    is_active: bool = False
    started_at: datetime | None = None
    completion_reported: bool = False
    bound_task_label: str | None = None

    @classmethod
    def fresh(cls, duration_seconds: int, kind: SessionKind = SessionKind.FOCUS,
              bound_task_label: str | None = None) -> "SessionRun":
        return cls(
            duration_seconds=duration_seconds,
            remaining_seconds=duration_seconds,
            kind=kind,
            bound_task_label=bound_task_label,
        )

    @property
    def state(self) -> SessionState:
        if self.is_active:
            return SessionState.RUNNING
        if self.remaining_seconds == 0:
            return SessionState.COMPLETED
        if self.started_at is not None:
            return SessionState.PAUSED
        return SessionState.IDLE
