# src/orchestration/ai_delegate.py
"""
AI delegate: runs natural-language requests through the translator and
routes each produced command line, spaced by a fixed delay.

Translated lines carry the requesting sender with Channel.AI. They have
already been admitted once (as the `ai` command), so the router does
not apply the cooldown to them. In-flight jobs are cancelled by
`neutral` and by connection loss.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Set

from contracts.notifier import Notifier
from contracts.translator import CommandTranslator, TranslationError
from contracts.types import Sender
from monitoring.bus import EventBus
from runtime.error_handling import spawn_logged


log = logging.getLogger(__name__)

RouteFn = Callable[[str, Sender], Any]


class AiDelegate:
    def __init__(
        self,
        translator: CommandTranslator,
        route: RouteFn,
        notifier: Notifier,
        *,
        command_delay_s: float = 0.5,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._translator = translator
        self._route = route
        self._notifier = notifier
        self._delay = command_delay_s
        self._bus = bus
        self._jobs: Set["asyncio.Task[Any]"] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._jobs)

    def submit(self, text: str, sender: Sender) -> "asyncio.Task[Any]":
        """Start translating `text` in the background."""
        job = spawn_logged(self.run(text, sender), name=f"ai:{sender.name}", bus=self._bus)
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)
        return job

    def cancel_all(self) -> int:
        jobs = [j for j in self._jobs if not j.done()]
        for job in jobs:
            job.cancel()
        self._jobs.clear()
        if jobs:
            log.info("Cancelled %d AI job(s)", len(jobs))
        return len(jobs)

    async def run(self, text: str, sender: Sender) -> int:
        """Translate and route; returns the number of lines routed."""
        try:
            translation = await self._translator.translate(text)
        except TranslationError as exc:
            log.warning("AI error: %s", exc)
            self._notifier.notify(sender, f"AI processing error: {exc}")
            return 0

        if translation.understanding:
            log.info("[AI] understanding: %s", translation.understanding)
            self._notifier.broadcast(f"§d* Understanding: {translation.understanding}")

        commands = [c.strip() for c in translation.commands if c.strip()]
        if not commands:
            log.info("[AI] nothing to execute for %r", text)
            return 0
        log.info("[AI] planned actions: %s", commands)
        self._notifier.broadcast(f"§d* Planning to execute: {', '.join(commands)} ({len(commands)})")

        line_sender = sender.translated()
        for i, line in enumerate(commands):
            if i:
                await asyncio.sleep(self._delay)
            log.info("[AI] executing: %s", line)
            self._notifier.notify(sender, f"Executing: {line}")
            self._route(line, line_sender)
        return len(commands)
