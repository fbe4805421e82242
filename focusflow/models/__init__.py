from focusflow.models.base import Base
from focusflow.models.focus_session import FocusSession
from focusflow.models.habit import Habit
from focusflow.models.note import Note
from focusflow.models.task import Task
from focusflow.models.user import User

__all__ = [
    "Base",
    "FocusSession",
    "Habit",
    "Note",
    "Task",
    "User",
]
