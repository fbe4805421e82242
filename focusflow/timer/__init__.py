from focusflow.timer.binder import TaskBinder
from focusflow.timer.clock import SessionClock
from focusflow.timer.controller import SessionController
from focusflow.timer.models import SessionKind, SessionRun, SessionState
from focusflow.timer.notifier import Notifier, Toaster
from focusflow.timer.persister import CompletionPersister

__all__ = [
    "CompletionPersister",
    "Notifier",
    "SessionClock",
    "SessionController",
    "SessionKind",
    "SessionRun",
    "SessionState",
    "TaskBinder",
    "Toaster",
]
