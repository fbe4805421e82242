import logging

from focusflow.client.api import FocusFlowClient
from focusflow.client.cache import TASKS, QueryCache
from focusflow.timer.controller import SessionController

logger = logging.getLogger(__name__)


class TaskBinder:
    """Lets the user pick an incomplete task as the label for the current run.

    Binding is label-only: the task itself is never modified, and completing
    a run does not complete its task.
    """

    def __init__(self, api: FocusFlowClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def candidates(self) -> list[dict]:
        tasks = await self.cache.get(TASKS, lambda: self.api.list_tasks(completed=False))
        return [t for t in tasks if not t.get("completed")]

    def bind(self, controller: SessionController, task: dict | None) -> None:
        label = task["title"] if task else None
        controller.bind_task(label)
        logger.debug("Bound timer to %r", label)
