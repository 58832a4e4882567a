# src/orchestration/notifier.py
"""
ChatNotifier: the default Notifier.

Feedback routing:
  - console sender -> console output (rich console in the CLI, else the
    log); mirrored into public chat as "§b[Console] ..." while ambient
    notifications are enabled and the session is live
  - any other sender -> `/msg`-style direct message while live,
    otherwise only logged as queued

Ambient broadcasts are public chat lines, colored with §b unless the
text already carries a § color code. They are dropped when disabled or
when no session is live.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from contracts.types import Sender
from contracts.world import WorldSession
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event


log = logging.getLogger(__name__)

COLOR_MARK = "§"
DEFAULT_COLOR = "§b"


class ChatNotifier:
    def __init__(
        self,
        session: Callable[[], Optional[WorldSession]],
        *,
        console_output: Optional[Callable[[str], None]] = None,
        bus: Optional[EventBus] = None,
        enabled: bool = True,
    ) -> None:
        self._session = session
        self._console_output = console_output
        self._bus = bus
        self.enabled = enabled

    def set_console_output(self, fn: Optional[Callable[[str], None]]) -> None:
        self._console_output = fn

    def notify(self, sender: Sender, text: str) -> None:
        try:
            self._notify(sender, text)
        except Exception:
            log.exception("Error sending feedback to %s", sender.name)

    def broadcast(self, text: str) -> None:
        session = self._session()
        if not self.enabled or session is None:
            return
        line = text if COLOR_MARK in text else f"{DEFAULT_COLOR}{text}"
        try:
            session.send_chat(line)
        except Exception:
            log.exception("Error sending notification")
            return
        log.info("[NOTIFY] %s", line)
        self._publish("broadcast", None, line)

    def _notify(self, sender: Sender, text: str) -> None:
        session = self._session()
        if sender.is_console:
            if self._console_output is not None:
                self._console_output(text)
            else:
                log.info("[BOT] %s", text)
            if self.enabled and session is not None:
                session.send_chat(f"{DEFAULT_COLOR}[Console] {text}")
        elif session is not None:
            session.send_direct(sender.name, text)
            log.info("[BOT -> %s] %s", sender.name, text)
        else:
            log.info("[QUEUED MESSAGE -> %s] %s", sender.name, text)
        self._publish("feedback", sender, text)

    def _publish(self, kind: str, sender: Optional[Sender], text: str) -> None:
        log_event(
            self._bus,
            module="orchestration.notifier",
            event_type=EventType.NOTIFICATION,
            message=text,
            payload={
                "kind": kind,
                "sender": sender.name if sender else None,
                "channel": sender.channel.value if sender else None,
            },
            correlation_id=sender.name if sender else None,
        )
