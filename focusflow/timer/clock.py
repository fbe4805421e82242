import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionClock:
    """Counts `remaining_seconds` down by one per tick on the running event loop.

    `on_tick(remaining)` runs after every decrement; `on_zero()` runs once, on
    the tick that reaches zero. `stop()` cancels the pending tick, and a tick
    that was already scheduled before `stop()` is discarded.
    """

    def __init__(
        self,
        remaining_seconds: int,
        on_tick: Callable[[int], None] | None = None,
        on_zero: Callable[[], None] | None = None,
        interval: float = 1.0,
    ):
        self.remaining_seconds = remaining_seconds
        self.on_tick = on_tick
        self.on_zero = on_zero
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def start(self) -> bool:
        """Begin ticking. No-op if already ticking or nothing is left to count."""
        if self._task is not None or self.remaining_seconds <= 0:
            return False
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))
        return True

    def stop(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def set_remaining(self, seconds: int) -> None:
        if self._task is not None:
            raise RuntimeError("Cannot change remaining time while the clock is running")
        self.remaining_seconds = max(0, seconds)

    async def _run(self, generation: int) -> None:
        while self.remaining_seconds > 0:
            await asyncio.sleep(self.interval)
            if generation != self._generation:
                return
            self.remaining_seconds -= 1
            if self.on_tick:
                try:
                    self.on_tick(self.remaining_seconds)
                except Exception:
                    logger.exception("Clock tick callback failed")
                if generation != self._generation:
                    return

        self._task = None
        self._generation += 1
        if self.on_zero:
            try:
                self.on_zero()
            except Exception:
                logger.exception("Clock zero-crossing callback failed")
