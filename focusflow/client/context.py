"""Signed-in client state, passed explicitly to every client component.

Holds the token pair and a cached copy of the user profile. `hydrate()` loads
it from the credentials file, `sign_in()` writes it back and `logout()` wipes
both memory and file.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ClientContext:
    def __init__(self, path: Path | None = None):
        self.path = path
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self.user: dict | None = None

    @classmethod
    def hydrate(cls, path: Path) -> "ClientContext":
        """Load a context from disk. A missing or unreadable file yields an anonymous context."""
        context = cls(path)
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError:
            return context
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable credentials file %s", path)
            return context

        if isinstance(data, dict):
            context.access_token = data.get("access_token")
            context.refresh_token = data.get("refresh_token")
            context.user = data.get("user")
        return context

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    @property
    def user_id(self) -> str | None:
        return self.user.get("id") if self.user else None

    @property
    def total_focus_time(self) -> int:
        return int((self.user or {}).get("total_focus_time") or 0)

    def sign_in(self, tokens: dict, user: dict | None = None) -> None:
        self.access_token = tokens["access_token"]
        self.refresh_token = tokens.get("refresh_token")
        if user is not None:
            self.user = user
        self.save()

    def set_user(self, user: dict) -> None:
        self.user = user
        self.save()

    def save(self) -> None:
        if self.path is None:
            return
        path = Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps({
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "user": self.user,
            }),
            encoding="utf-8",
        )

    def logout(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None
        if self.path is not None:
            Path(self.path).unlink(missing_ok=True)
