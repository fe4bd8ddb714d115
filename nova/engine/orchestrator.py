"""Orchestrator: the conversation engine's controller.

Owns the session state and the transient indicators, forks the fact
extraction and reply pipelines for each user turn, runs bootstrap once,
drives the re-engagement scheduler, and fronts backup import/export.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nova.audio.speech import AudioUnavailableError, SilentSpeaker
from nova.config import settings
from nova.engine import backup
from nova.engine.bootstrap import run_bootstrap
from nova.engine.extraction import extract_and_remember
from nova.engine.indicators import TYPING, Indicators
from nova.engine.reply import generate_and_append_reply
from nova.engine.scheduler import ReengagementScheduler
from nova.state.models import Message, Role

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine

    from nova.audio.speech import Recorder, Speaker
    from nova.llm.service import LanguageService
    from nova.state.models import BackupDocument, Memory
    from nova.state.session import SessionState

logger = logging.getLogger(__name__)

HEARING_ERROR = "Sorry, I couldn't hear that clearly."
NO_MICROPHONE = (
    "No microphone is available. Check that a recording device is connected "
    "and that this app is allowed to use it."
)


@dataclass
class Turn:
    """The user message of a turn and the two pipelines it started."""

    user_message: Message
    extraction: asyncio.Task[Memory | None]
    reply: asyncio.Task[Message]

    async def wait(self) -> None:
        """Wait for both pipelines. Neither raises."""
        await asyncio.gather(self.extraction, self.reply)


class Orchestrator:
    """Stateful controller for one conversation.

    Args:
        state: Session state (transcript + memory set).
        language: Language service used by every pipeline.
        speaker: Speech output; silent when omitted.
        recorder: Audio capture; voice turns from the microphone are
            unavailable when omitted.
        muted: Initial mute state (default from settings).
        quiet_period: Re-engagement quiet period override in seconds.
    """

    def __init__(
        self,
        state: SessionState,
        language: LanguageService,
        *,
        speaker: Speaker | None = None,
        recorder: Recorder | None = None,
        muted: bool | None = None,
        quiet_period: float | None = None,
    ) -> None:
        self.state = state
        self.language = language
        self.speaker = speaker or SilentSpeaker()
        self.recorder = recorder
        self.muted = settings.muted if muted is None else muted
        self.indicators = Indicators()
        self.scheduler = ReengagementScheduler(
            state,
            language,
            speak=self.speak,
            is_typing=lambda: self.indicators.typing,
            quiet_period=quiet_period,
        )
        self.indicators.subscribe(self._on_indicator)
        self._tasks: set[asyncio.Task] = set()
        self._loaded = False
        self._bootstrapped = False

    # -- Lifecycle -------------------------------------------------------------

    async def load(self) -> None:
        if not self._loaded:
            await self.state.load()
            self._loaded = True

    async def start(self) -> Message | None:
        """Load state, start the scheduler and run bootstrap (once).

        Returns the bootstrap message, if one was added.
        """
        await self.load()
        await self.scheduler.start()
        return await self.bootstrap()

    async def bootstrap(self) -> Message | None:
        if self._bootstrapped:
            return None
        self._bootstrapped = True
        return await run_bootstrap(self.state, self.language, speak=self.speak)

    async def stop(self) -> None:
        """Stop the scheduler and let in-flight pipelines finish."""
        await self.scheduler.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self.speaker.cancel()

    # -- Speech ----------------------------------------------------------------

    def speak(self, text: str) -> None:
        if self.muted:
            return
        try:
            self.speaker.speak(text)
        except Exception:
            logger.exception("Speech output failed")

    def set_muted(self, muted: bool) -> None:
        if muted and not self.muted:
            self.speaker.cancel()
        self.muted = muted

    def toggle_mute(self) -> bool:
        self.set_muted(not self.muted)
        return self.muted

    # -- Turns -----------------------------------------------------------------

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def submit_text(self, text: str, *, is_audio: bool = False) -> Turn | None:
        """Start a turn for *text*. Returns None for blank input.

        The user message is appended first; then fact extraction and reply
        generation are dispatched back to back and complete independently.
        """
        text = text.strip()
        if not text:
            return None

        self.speaker.cancel()
        history = self.state.messages
        user_message = await self.state.append_message(
            Message.create(Role.USER, text, is_audio=is_audio)
        )

        extraction = self._spawn(
            extract_and_remember(
                text, state=self.state, language=self.language, indicators=self.indicators
            )
        )
        reply = self._spawn(
            generate_and_append_reply(
                history,
                text,
                state=self.state,
                language=self.language,
                indicators=self.indicators,
                speak=self.speak,
            )
        )
        return Turn(user_message=user_message, extraction=extraction, reply=reply)

    async def submit_audio(self, audio: bytes) -> Turn | None:
        """Transcribe *audio* and start a turn with the result.

        Blank transcriptions are ignored. Raises ``AudioUnavailableError``
        when the audio cannot be transcribed.
        """
        try:
            text = await self.language.transcribe_audio(audio)
        except Exception as exc:
            logger.exception("Transcription error")
            raise AudioUnavailableError(HEARING_ERROR) from exc
        if not text.strip():
            logger.info("Empty transcription; ignoring")
            return None
        return await self.submit_text(text, is_audio=True)

    async def start_recording(self) -> None:
        if self.recorder is None:
            raise AudioUnavailableError(NO_MICROPHONE)
        self.speaker.cancel()
        await self.recorder.start_recording()

    async def finish_recording(self) -> Turn | None:
        if self.recorder is None:
            raise AudioUnavailableError(NO_MICROPHONE)
        audio = await self.recorder.stop_recording()
        return await self.submit_audio(audio)

    # -- Backup ----------------------------------------------------------------

    def export_backup(self) -> BackupDocument:
        return backup.export_backup(self.state)

    async def import_backup(
        self, raw: bytes | str, confirm: Callable[[str], Awaitable[bool]]
    ) -> bool:
        """See :func:`nova.engine.backup.import_backup`."""
        return await backup.import_backup(self.state, raw, confirm)

    # -- Internal --------------------------------------------------------------

    def _on_indicator(self, name: str, value: object) -> None:
        if name == TYPING:
            self.scheduler.on_typing_changed(bool(value))
