import logging
from datetime import datetime

import httpx

from focusflow.client.context import ClientContext

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A FocusFlow API call failed (transport error or non-2xx response)."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class FocusFlowClient:
    """Async REST client for the FocusFlow API.

    Pass an `httpx.AsyncClient` to reuse a connection pool or to point the
    client at an in-process ASGI app; otherwise one is created for `base_url`.
    """

    def __init__(
        self,
        context: ClientContext,
        base_url: str = "http://localhost:8000",
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.context = context
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "FocusFlowClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    def _headers(self) -> dict:
        if self.context.access_token:
            return {"Authorization": f"Bearer {self.context.access_token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs):
        try:
            resp = await self.http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e) or type(e).__name__) from e

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise ApiError(str(detail), status_code=resp.status_code)

        if resp.status_code == 204:
            return None
        return resp.json()

    # --- Auth / profile ---

    async def register(self, email: str, password: str, first_name: str, last_name: str) -> dict:
        tokens = await self._request("POST", "/auth/register", json={
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
        })
        self.context.sign_in(tokens)
        self.context.set_user(await self.me())
        return self.context.user

    async def login(self, email: str, password: str) -> dict:
        tokens = await self._request("POST", "/auth/login", json={
            "email": email,
            "password": password,
        })
        self.context.sign_in(tokens)
        self.context.set_user(await self.me())
        return self.context.user

    async def me(self) -> dict:
        return await self._request("GET", "/users/me")

    async def update_me(self, **fields) -> dict:
        return await self._request("PATCH", "/users/me", json=fields)

    # --- Tasks ---

    async def list_tasks(self, completed: bool | None = None) -> list[dict]:
        params = {} if completed is None else {"completed": str(completed).lower()}
        return await self._request("GET", "/tasks", params=params)

    async def create_task(self, title: str, priority: str = "medium", **fields) -> dict:
        return await self._request("POST", "/tasks", json={"title": title, "priority": priority, **fields})

    # --- Focus sessions ---

    async def create_focus_session(
        self,
        duration_minutes: int,
        task_label: str | None,
        kind: str,
        completed_at: datetime,
    ) -> dict:
        return await self._request("POST", "/focus-sessions", json={
            "duration_minutes": duration_minutes,
            "task_label": task_label,
            "kind": kind,
            "completed_at": completed_at.isoformat(),
        })

    async def list_focus_sessions(self, kind: str | None = None) -> list[dict]:
        params = {"kind": kind} if kind else {}
        return await self._request("GET", "/focus-sessions", params=params)

    # --- Stats / assistant ---

    async def get_stats(self, period: str = "weekly") -> dict:
        return await self._request("GET", "/stats", params={"period": period})

    async def breakdown_task(self, title: str, description: str | None = None) -> dict:
        return await self._request("POST", "/assistant/breakdown", json={
            "title": title,
            "description": description,
        })
