"""Wires the focus timer and its collaborators from ClientSettings."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from focusflow.client.api import FocusFlowClient
from focusflow.client.cache import QueryCache
from focusflow.client.context import ClientContext
from focusflow.config import ClientSettings
from focusflow.timer.binder import TaskBinder
from focusflow.timer.controller import SessionController
from focusflow.timer.models import SessionRun
from focusflow.timer.notifier import (
    DesktopNotifier,
    NotificationPermission,
    Notifier,
    SoundPlayer,
    Toaster,
)
from focusflow.timer.persister import CompletionPersister

logger = logging.getLogger(__name__)


@dataclass
class FocusTimer:
    context: ClientContext
    api: FocusFlowClient
    cache: QueryCache
    toaster: Toaster
    notifier: Notifier
    controller: SessionController
    binder: TaskBinder

    async def logout(self) -> None:
        """Stop the timer, let pending writes settle, then drop credentials."""
        self.controller.teardown()
        await self.controller.drain()
        self.context.logout()
        self.cache.clear()

    async def aclose(self) -> None:
        self.controller.teardown()
        await self.controller.drain()
        await self.api.aclose()


def create_focus_timer(
    settings: ClientSettings | None = None,
    http: httpx.AsyncClient | None = None,
    permission_prompt: Callable[[], bool] | None = None,
    on_tick: Callable[[SessionRun], None] | None = None,
) -> FocusTimer:
    settings = settings or ClientSettings()
    context = ClientContext.hydrate(settings.CREDENTIALS_PATH)
    if not context.is_authenticated:
        logger.info("No stored credentials at %s, sign in to record sessions", settings.CREDENTIALS_PATH)

    api = FocusFlowClient(context, base_url=settings.API_URL, http=http)
    cache = QueryCache()
    toaster = Toaster()
    notifier = Notifier(
        toaster,
        NotificationPermission(permission_prompt),
        DesktopNotifier(settings.NOTIFICATION_TIMEOUT_SECONDS),
        SoundPlayer(settings.SOUND_FILE or None),
    )
    controller = SessionController(
        persister=CompletionPersister(api, cache, toaster),
        notifier=notifier,
        focus_seconds=settings.FOCUS_MINUTES * 60,
        break_seconds=settings.BREAK_MINUTES * 60,
        max_sessions=settings.MAX_SESSIONS,
        tick_interval=settings.TICK_INTERVAL_SECONDS,
        on_tick=on_tick,
    )
    return FocusTimer(
        context=context,
        api=api,
        cache=cache,
        toaster=toaster,
        notifier=notifier,
        controller=controller,
        binder=TaskBinder(api, cache),
    )
