"""Re-engagement scheduler: nudge the user after a quiet period.

A single APScheduler date job acts as a debounced idle timer.  Every
transcript change or typing flip bumps an epoch, removes the pending job
and, if the user spoke last and no reply is in flight, arms a fresh one.
A job only acts if its epoch is still current, and each armed quiet
period fires at most once.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from nova.config import settings
from nova.state.models import Message, Role

if TYPE_CHECKING:
    from collections.abc import Callable

    from nova.llm.service import LanguageService
    from nova.state.session import SessionState, StateChange

logger = logging.getLogger(__name__)

JOB_ID = "reengage"


class ReengagementScheduler:
    """Owns the idle timer.

    Args:
        state: Session state to watch and append to.
        language: Source of proactive questions.
        speak: Called with the nudge text (muting is the caller's concern).
        is_typing: Returns True while a reply is being generated.
        quiet_period: Seconds of quiet before a nudge (default from settings).
        timezone: Scheduler timezone (default from settings).
    """

    def __init__(
        self,
        state: SessionState,
        language: LanguageService,
        *,
        speak: Callable[[str], None],
        is_typing: Callable[[], bool],
        quiet_period: float | None = None,
        timezone: str | None = None,
    ) -> None:
        self._state = state
        self._language = language
        self._speak = speak
        self._is_typing = is_typing
        self._quiet_period = (
            settings.get_quiet_period() if quiet_period is None else max(0.0, quiet_period)
        )
        self._scheduler = AsyncIOScheduler(timezone=timezone or settings.scheduler_timezone)
        self._epoch = 0
        self._running = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def armed(self) -> bool:
        return self._running and self._scheduler.get_job(JOB_ID) is not None

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        if self._running:
            return
        self._unsubscribe = self._state.subscribe(self._on_state_change)
        self._scheduler.start()
        self._running = True
        logger.info("Re-engagement scheduler started (quiet period %.0fs)", self._quiet_period)
        self.rearm()

    async def stop(self) -> None:
        if not self._running:
            return
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self._scheduler.shutdown(wait=False)
        self._running = False
        self._epoch += 1
        logger.info("Re-engagement scheduler stopped")

    # -- Triggers --------------------------------------------------------------

    def _on_state_change(self, change: StateChange) -> None:
        self.rearm()

    def on_typing_changed(self, typing: bool) -> None:
        self.rearm()

    def rearm(self) -> None:
        """Cancel any pending timer and decide afresh whether to arm one."""
        self._epoch += 1
        self._cancel()
        if self._should_arm():
            self._arm(self._epoch)

    # -- Internal --------------------------------------------------------------

    def _should_arm(self) -> bool:
        last = self._state.last_message
        return (
            self._running
            and last is not None
            and last.role == Role.USER
            and not self._is_typing()
        )

    def _arm(self, epoch: int) -> None:
        run_at = datetime.now(UTC) + timedelta(seconds=self._quiet_period)
        self._scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=run_at),
            id=JOB_ID,
            name="re-engagement nudge",
            args=[epoch],
            misfire_grace_time=None,
            replace_existing=True,
        )
        logger.debug("Armed re-engagement for %s (epoch %d)", run_at.isoformat(), epoch)

    def _cancel(self) -> None:
        try:
            self._scheduler.remove_job(JOB_ID)
        except JobLookupError:
            pass

    async def _fire(self, epoch: int) -> Message | None:
        """Timer callback. Appends and speaks a proactive question."""
        if epoch != self._epoch or not self._should_arm():
            logger.debug("Skipping stale re-engagement (epoch %d)", epoch)
            return None

        try:
            question = await self._language.generate_proactive_question(self._state.memories)
        except Exception:
            logger.exception("Proactive question failed")
            return None

        if epoch != self._epoch:
            logger.info("Conversation moved on while nudging; dropping question")
            return None

        message = await self._state.append_message(Message.create(Role.MODEL, question))
        logger.info("Sent re-engagement nudge")
        self._speak(question)
        return message
