"""Transient UI-facing flags: typing, fact processing, last remembered fact."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from nova.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

TYPING = "typing"
PROCESSING_FACT = "processing_fact"
LAST_FACT = "last_fact"


class Indicators:
    """Observable flags owned by the orchestrator.

    Listeners receive ``(name, value)`` only when a value actually changes.
    """

    def __init__(self, fact_notice_seconds: float | None = None) -> None:
        self.typing = False
        self.processing_fact = False
        self._last_fact: str | None = None
        self._last_fact_at = 0.0
        self._notice_seconds = (
            settings.fact_notice_seconds if fact_notice_seconds is None else fact_notice_seconds
        )
        self._listeners: list[Callable[[str, object], None]] = []

    def subscribe(self, listener: Callable[[str, object], None]) -> None:
        self._listeners.append(listener)

    def _emit(self, name: str, value: object) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, value)
            except Exception:
                logger.exception("Indicator listener failed for %s", name)

    def set_typing(self, value: bool) -> None:
        if self.typing != value:
            self.typing = value
            self._emit(TYPING, value)

    def set_processing_fact(self, value: bool) -> None:
        if self.processing_fact != value:
            self.processing_fact = value
            self._emit(PROCESSING_FACT, value)

    def show_fact(self, text: str) -> None:
        self._last_fact = text
        self._last_fact_at = time.monotonic()
        self._emit(LAST_FACT, text)

    @property
    def last_extracted_fact(self) -> str | None:
        """The most recently remembered fact, while its notice is still showing."""
        if self._last_fact is None:
            return None
        if time.monotonic() - self._last_fact_at >= self._notice_seconds:
            return None
        return self._last_fact
