"""Completion feedback: in-app toasts, desktop notifications and a sound cue.

Toasts always go out. Desktop notifications need a one-time permission grant
and sound is optional; failures in either are logged and dropped.
"""

import logging
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from focusflow.timer.models import SessionKind

logger = logging.getLogger(__name__)

APP_NAME = "FocusFlow"

MESSAGES = {
    SessionKind.FOCUS: ("Focus session complete!", "Time for a break!"),
    SessionKind.BREAK: ("Break complete!", "Ready for another focus session?"),
}


@dataclass
class Toast:
    title: str
    description: str
    variant: str = "default"  # default, destructive


class Toaster:
    """In-app toast channel. The UI subscribes to render toasts."""

    def __init__(self):
        self.history: list[Toast] = []
        self._listeners: list[Callable[[Toast], None]] = []

    def subscribe(self, callback: Callable[[Toast], None]) -> None:
        self._listeners.append(callback)

    def show(self, title: str, description: str, variant: str = "default") -> Toast:
        toast = Toast(title, description, variant)
        self.history.append(toast)
        log = logger.warning if variant == "destructive" else logger.info
        log("%s: %s", title, description)
        for callback in list(self._listeners):
            try:
                callback(toast)
            except Exception:
                logger.exception("Toast listener failed")
        return toast


class NotificationPermission:
    """One-time desktop notification permission, asked at most once per process."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"

    def __init__(self, prompt: Callable[[], bool] | None = None, state: str = DEFAULT):
        self.prompt = prompt
        self.state = state

    @property
    def granted(self) -> bool:
        return self.state == self.GRANTED

    def request(self) -> str:
        if self.state != self.DEFAULT:
            return self.state
        try:
            allowed = bool(self.prompt()) if self.prompt else False
        except Exception:
            logger.debug("Notification permission prompt failed", exc_info=True)
            allowed = False
        self.state = self.GRANTED if allowed else self.DENIED
        return self.state


class DesktopNotifier:
    def __init__(self, timeout_seconds: int = 5):
        self.timeout_seconds = timeout_seconds

    def show(self, title: str, message: str) -> None:
        from plyer import notification

        notification.notify(
            title=title,
            message=message,
            app_name=APP_NAME,
            timeout=self.timeout_seconds,
        )


class SoundPlayer:
    """Fire-and-forget sound cue via the platform player, or the terminal bell."""

    def __init__(self, sound_file: str | Path | None = None):
        self.sound_file = Path(sound_file) if sound_file else None

    def play(self) -> None:
        if self.sound_file is None or not self.sound_file.exists():
            sys.stderr.write("\a")
            sys.stderr.flush()
            return

        if sys.platform == "darwin":
            subprocess.Popen(
                ["afplay", str(self.sound_file)],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
        elif sys.platform == "win32":
            import winsound
            winsound.PlaySound(str(self.sound_file), winsound.SND_FILENAME | winsound.SND_ASYNC)
        else:
            subprocess.Popen(
                ["paplay", str(self.sound_file)],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )


class Notifier:
    def __init__(
        self,
        toaster: Toaster,
        permission: NotificationPermission | None = None,
        desktop: DesktopNotifier | None = None,
        sound: SoundPlayer | None = None,
    ):
        self.toaster = toaster
        self.permission = permission or NotificationPermission()
        self.desktop = desktop
        self.sound = sound

    def notify(self, kind: SessionKind) -> None:
        title, message = MESSAGES[kind]
        self.toaster.show(title, message)

        if self.desktop is not None and self.permission.granted:
            try:
                self.desktop.show(title, message)
            except Exception:
                logger.debug("Desktop notification failed", exc_info=True)

        if self.sound is not None:
            try:
                self.sound.play()
            except Exception:
                logger.debug("Sound cue failed", exc_info=True)
