"""Focus timer lifecycle: Idle -> Running <-> Paused -> Completed -> Idle.

The controller owns one SessionRun and one SessionClock. Every transition out
of Running stops the clock first, so a stale tick can never land on a reset
run. Completion is reported at most once per run: the guard flag is set
before the persister and notifier are invoked.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from focusflow.timer.clock import SessionClock
from focusflow.timer.models import (
    BREAK_LENGTHS,
    DEFAULT_BREAK_MINUTES,
    DEFAULT_FOCUS_MINUTES,
    DEFAULT_MAX_SESSIONS,
    FOCUS_LENGTHS,
    SessionKind,
    SessionRun,
    SessionState,
)
from focusflow.timer.notifier import Notifier
from focusflow.timer.persister import CompletionPersister, utcnow

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        persister: CompletionPersister | None = None,
        notifier: Notifier | None = None,
        focus_seconds: int = DEFAULT_FOCUS_MINUTES * 60,
        break_seconds: int = DEFAULT_BREAK_MINUTES * 60,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        tick_interval: float = 1.0,
        now: Callable[[], datetime] = utcnow,
        on_tick: Callable[[SessionRun], None] | None = None,
        focus_lengths: tuple[int, ...] = FOCUS_LENGTHS,
        break_lengths: tuple[int, ...] = BREAK_LENGTHS,
    ):
        self.focus_lengths = {m * 60 for m in focus_lengths}
        self.break_lengths = {m * 60 for m in break_lengths}
        self._check_length(focus_seconds, SessionKind.FOCUS)
        self._check_length(break_seconds, SessionKind.BREAK)

        self.persister = persister
        self.notifier = notifier
        self.focus_seconds = focus_seconds
        self.break_seconds = break_seconds
        self.max_sessions = max_sessions
        self.session_count = 0
        self.now = now
        self.on_tick = on_tick

        self.run = SessionRun.fresh(focus_seconds)
        self.clock = SessionClock(
            focus_seconds,
            on_tick=self._on_tick,
            on_zero=self._on_zero_crossing,
            interval=tick_interval,
        )
        self._pending: set[asyncio.Task] = set()

    # --- Read-outs ---

    @property
    def state(self) -> SessionState:
        return self.run.state

    @property
    def progress(self) -> float:
        """Elapsed share of the current run, 0-100."""
        if self.run.duration_seconds == 0:
            return 100.0
        elapsed = self.run.duration_seconds - self.run.remaining_seconds
        return elapsed / self.run.duration_seconds * 100

    @property
    def formatted_remaining(self) -> str:
        mins, secs = divmod(self.run.remaining_seconds, 60)
        return f"{mins:02d}:{secs:02d}"

    # --- Transitions ---

    def start(self) -> bool:
        """Start from Idle or resume from Paused. Returns False if nothing changed."""
        if self.run.is_active:
            return False
        if self.run.remaining_seconds == 0:
            logger.debug("start() ignored: run already completed, reset first")
            return False

        if self.run.started_at is None:
            self.run.started_at = self.now()
            self.run.completion_reported = False

        self.clock.set_remaining(self.run.remaining_seconds)
        self.run.is_active = True
        self.clock.start()
        return True

    def pause(self) -> bool:
        if not self.run.is_active:
            return False
        self.clock.stop()
        self.run.is_active = False
        return True

    def reset(self) -> None:
        self.clock.stop()
        self._rearm(self.run.duration_seconds, self.run.kind)

    def change_duration(self, seconds: int) -> bool:
        """Set the length of the current kind of run. Rejected while running."""
        self._check_length(seconds, self.run.kind)
        if self.run.is_active:
            logger.warning("Pause the timer before changing its length")
            return False

        if self.run.kind is SessionKind.FOCUS:
            self.focus_seconds = seconds
        else:
            self.break_seconds = seconds
        self.clock.stop()
        self._rearm(seconds, self.run.kind)
        return True

    def change_break_duration(self, seconds: int) -> bool:
        """Set the break length; re-arms the current run only if it is an idle break."""
        self._check_length(seconds, SessionKind.BREAK)
        if self.run.kind is SessionKind.BREAK:
            return self.change_duration(seconds)
        self.break_seconds = seconds
        return True

    def skip(self) -> None:
        """Drop the current run and go to an idle focus run, advancing the session count."""
        self.clock.stop()
        self._rearm(self.focus_seconds, SessionKind.FOCUS)
        self._advance_session_count()

    def start_break(self) -> bool:
        self.clock.stop()
        self._rearm(self.break_seconds, SessionKind.BREAK)
        return self.start()

    def bind_task(self, label: str | None) -> None:
        self.run.bound_task_label = label

    def teardown(self) -> None:
        """Stop ticking for good. In-flight persistence is left to finish."""
        self.clock.stop()
        self.run.is_active = False

    async def drain(self) -> None:
        """Wait for in-flight persistence to settle."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # --- Internals ---

    def _check_length(self, seconds: int, kind: SessionKind) -> None:
        allowed = self.focus_lengths if kind is SessionKind.FOCUS else self.break_lengths
        if seconds not in allowed:
            raise ValueError(
                f"Unsupported {kind.value} length {seconds}s; choose one of "
                + ", ".join(f"{s // 60} min" for s in sorted(allowed))
            )

    def _rearm(self, seconds: int, kind: SessionKind) -> None:
        self.run = SessionRun.fresh(seconds, kind, self.run.bound_task_label)
        self.clock.set_remaining(seconds)

    def _advance_session_count(self) -> None:
        self.session_count = min(self.session_count + 1, self.max_sessions)

    def _on_persist_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Recording the completed session crashed", exc_info=task.exception())

    def _on_tick(self, remaining: int) -> None:
        self.run.remaining_seconds = remaining
        if self.on_tick:
            self.on_tick(self.run)

    def _on_zero_crossing(self) -> None:
        self.clock.stop()
        self.run.is_active = False
        self.run.remaining_seconds = 0

        run = self.run
        if run.started_at is None or run.completion_reported:
            return
        run.completion_reported = True

        if run.kind is SessionKind.FOCUS:
            self._advance_session_count()

        if self.persister is not None:
            task = asyncio.get_running_loop().create_task(self.persister.persist(run))
            self._pending.add(task)
            task.add_done_callback(self._on_persist_done)

        if self.notifier is not None:
            try:
                self.notifier.notify(run.kind)
            except Exception:
                logger.exception("Completion notifier failed")
