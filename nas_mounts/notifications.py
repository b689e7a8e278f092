"""Desktop notifications for the NAS share monitor.

The monitor usually runs from a systemd user timer, where DISPLAY and the
session bus address are often not set. Before calling notify-send the
notifier works through a ranked list of discovery strategies to find a live
graphical session. Delivery is best-effort: failures are logged and reported
as False, never raised.
"""

from __future__ import annotations

import os
import pwd
import re
import subprocess
from dataclasses import dataclass
from logging import Logger
from typing import Callable, Literal, Optional

Urgency = Literal["normal", "warning", "critical"]

APP_NAME = "nas-share-monitor"
NOTIFY_COMMAND_TIMEOUT_SECONDS = 10
QUERY_TIMEOUT_SECONDS = 5

# notify-send only knows low/normal/critical
NOTIFY_SEND_URGENCY = {
    "normal": "normal",
    "warning": "normal",
    "critical": "critical",
}

URGENCY_ICONS = {
    "normal": "drive-harddisk",
    "warning": "dialog-warning",
    "critical": "dialog-error",
}

WHO_DISPLAY_PATTERN = re.compile(r'\((:\d+(?:\.\d+)?)\)')

SessionEnv = dict[str, str]
DisplayStrategy = Callable[[], Optional[SessionEnv]]


@dataclass
class Notification:
    """A desktop notification."""

    urgency: Urgency
    title: str
    body: str


def _run_query(args: list[str]) -> Optional[str]:
    """Run a session query command and return stdout, or None on failure."""
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=QUERY_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def display_from_environment() -> Optional[SessionEnv]:
    """Use DISPLAY or WAYLAND_DISPLAY when the process already has one."""
    env = {}
    for name in ("DISPLAY", "WAYLAND_DISPLAY"):
        value = os.environ.get(name)
        if value:
            env[name] = value
    return env or None


def display_from_who() -> Optional[SessionEnv]:
    """Find an X11 display such as ':0' in the output of who."""
    output = _run_query(["who"])
    if not output:
        return None
    match = WHO_DISPLAY_PATTERN.search(output)
    if not match:
        return None
    return {"DISPLAY": match.group(1)}


def display_from_loginctl(username: Optional[str] = None) -> Optional[SessionEnv]:
    """Find the user's graphical session through loginctl."""
    if username is None:
        username = _current_username()
    if not username:
        return None
    output = _run_query(["loginctl", "list-sessions", "--no-legend"])
    if not output:
        return None

    session_id = None
    for line in output.splitlines():
        fields = line.split()
        if len(fields) >= 3 and fields[2] == username:
            session_id = fields[0]
            break
    if session_id is None:
        return None

    session_type = (_run_query(["loginctl", "show-session", session_id, "-p", "Type", "--value"]) or "").strip()
    if session_type == "x11":
        display = (_run_query(["loginctl", "show-session", session_id, "-p", "Display", "--value"]) or "").strip()
        if display:
            return {"DISPLAY": display}
    elif session_type == "wayland":
        return {"WAYLAND_DISPLAY": os.environ.get("WAYLAND_DISPLAY") or "wayland-0"}
    return None


def _current_username() -> str:
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        return os.environ.get("USER", "")


DISPLAY_STRATEGIES: tuple[DisplayStrategy, ...] = (
    display_from_environment,
    display_from_who,
    display_from_loginctl,
)


def discover_display(strategies: tuple[DisplayStrategy, ...] = DISPLAY_STRATEGIES) -> Optional[SessionEnv]:
    """Return environment overrides for the first strategy that finds a display."""
    for strategy in strategies:
        env = strategy()
        if env:
            return env
    return None


def discover_session_bus(uid: Optional[int] = None) -> Optional[str]:
    """Return the D-Bus session address from the environment or the user runtime dir."""
    address = os.environ.get("DBUS_SESSION_BUS_ADDRESS")
    if address:
        return address
    if uid is None:
        uid = os.getuid()
    bus_path = f"/run/user/{uid}/bus"
    if os.path.exists(bus_path):
        return f"unix:path={bus_path}"
    return None


class DesktopNotifier:
    """Sends notifications to the user's desktop session via notify-send."""

    def __init__(
        self,
        logger: Optional[Logger] = None,
        timeout_ms: int = 30000,
        strategies: tuple[DisplayStrategy, ...] = DISPLAY_STRATEGIES,
    ):
        """Initialize the notifier.

        Args:
            logger: Optional logger for delivery failures
            timeout_ms: How long the notification stays on screen
            strategies: Ranked display discovery strategies
        """
        self.logger = logger
        self.timeout_ms = timeout_ms
        self.strategies = strategies

    def _log(self, level: str, message: str) -> None:
        if self.logger:
            getattr(self.logger, level)(message)

    def _session_env(self, notification: Notification) -> Optional[dict[str, str]]:
        display_env = discover_display(self.strategies)
        if not display_env:
            self._log("warning", f"No display available for notification: {notification.title} - {notification.body}")
            return None

        bus_address = discover_session_bus()
        if not bus_address:
            self._log("warning", f"No D-Bus session for notification: {notification.title} - {notification.body}")
            return None

        env = dict(os.environ)
        env.update(display_env)
        env["DBUS_SESSION_BUS_ADDRESS"] = bus_address
        return env

    def send(self, notification: Notification) -> bool:
        """Deliver a notification.

        Returns:
            True if notify-send reported success, False otherwise
        """
        env = self._session_env(notification)
        if env is None:
            return False

        args = [
            "notify-send",
            "-a", APP_NAME,
            "-u", NOTIFY_SEND_URGENCY.get(notification.urgency, "normal"),
            "-t", str(self.timeout_ms),
            "-i", URGENCY_ICONS.get(notification.urgency, URGENCY_ICONS["normal"]),
            notification.title,
            notification.body,
        ]
        try:
            result = subprocess.run(
                args,
                env=env,
                capture_output=True,
                text=True,
                timeout=NOTIFY_COMMAND_TIMEOUT_SECONDS,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            self._log("error", f"Failed to send desktop notification '{notification.title}': {e}")
            return False

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"exit code {result.returncode}"
            self._log("error", f"notify-send failed for '{notification.title}': {detail}")
            return False
        return True

    def notify(self, urgency: Urgency, title: str, body: str) -> bool:
        """Send a notification built from its parts."""
        return self.send(Notification(urgency=urgency, title=title, body=body))
