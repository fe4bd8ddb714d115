"""Local speech-to-text with faster-whisper."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile

os.environ.setdefault("HF_HUB_DISABLE_TELEMETRY", "1")

from faster_whisper import WhisperModel  # noqa: E402

from nova.config import settings  # noqa: E402

logger = logging.getLogger(__name__)


class Transcriber:
    """Whisper model wrapper. The model loads on first use."""

    def __init__(
        self,
        model_size: str | None = None,
        device: str | None = None,
        compute_type: str | None = None,
    ) -> None:
        self._model_size = model_size or settings.whisper_model_size
        self._device = device or settings.whisper_device
        self._compute_type = compute_type or settings.whisper_compute_type
        self._model: WhisperModel | None = None

    def _get_model(self) -> WhisperModel:
        if self._model is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            self._model = WhisperModel(
                self._model_size, device=self._device, compute_type=self._compute_type
            )
        return self._model

    def transcribe(self, audio_bytes: bytes) -> str:
        """Transcribe audio bytes to text (blocking)."""
        model = self._get_model()
        with tempfile.NamedTemporaryFile(suffix=".audio", delete=True) as f:
            f.write(audio_bytes)
            f.flush()
            segments, _info = model.transcribe(f.name)
            text = " ".join(seg.text.strip() for seg in segments)
        logger.debug("Transcribed %d bytes → %r", len(audio_bytes), text[:80])
        return text

    async def transcribe_async(self, audio_bytes: bytes) -> str:
        """Transcribe without blocking the event loop."""
        return await asyncio.to_thread(self.transcribe, audio_bytes)
