import logging
from collections.abc import Callable
from datetime import datetime, timezone

from focusflow.client.api import ApiError, FocusFlowClient
from focusflow.client.cache import CURRENT_USER, FOCUS_SESSIONS, QueryCache
from focusflow.timer.models import DEFAULT_TASK_LABEL, SessionKind, SessionRun
from focusflow.timer.notifier import Toaster

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CompletionPersister:
    """Records a completed run as one focus-session record.

    Called at most once per run by the controller. Never retries: a failed
    write is reported through a toast and the run's data is dropped.
    """

    def __init__(
        self,
        api: FocusFlowClient,
        cache: QueryCache,
        toaster: Toaster,
        now: Callable[[], datetime] = utcnow,
    ):
        self.api = api
        self.cache = cache
        self.toaster = toaster
        self.now = now

    async def persist(self, run: SessionRun) -> dict | None:
        if run.started_at is None:
            logger.error("Refusing to record a %s run that never started", run.kind.value)
            return None

        completed_at = self.now()
        duration_minutes = round((completed_at - run.started_at).total_seconds() / 60)

        try:
            record = await self.api.create_focus_session(
                duration_minutes=duration_minutes,
                task_label=run.bound_task_label or DEFAULT_TASK_LABEL,
                kind=run.kind.value,
                completed_at=completed_at,
            )
        except ApiError as e:
            logger.warning("Could not record %s session: %s", run.kind.value, e.detail)
            self.toaster.show(
                "Session wasn't recorded",
                "Your session couldn't be saved. Reset the timer to start a new one.",
                variant="destructive",
            )
            return None

        self.cache.invalidate(FOCUS_SESSIONS)
        if run.kind is SessionKind.FOCUS:
            await self._add_focus_time(duration_minutes)
        return record

    async def _add_focus_time(self, minutes: int) -> None:
        """Add `minutes` to the server-side total and store the updated profile."""
        context = self.api.context
        if context.user is None:
            logger.warning("No signed-in profile, focus time not added")
            return
        try:
            current = await self.api.me()
            total = int(current.get("total_focus_time") or 0) + minutes
            context.set_user(await self.api.update_me(total_focus_time=total))
        except ApiError as e:
            logger.warning("Could not update total focus time: %s", e.detail)
        finally:
            self.cache.invalidate(CURRENT_USER)
