"""Audio collaborator interfaces: speech output and recording."""

from typing import Protocol, runtime_checkable


class AudioUnavailableError(RuntimeError):
    """Audio input cannot be used (no device, no permission, unreadable file).

    The message is meant to be shown to the user as-is.
    """


@runtime_checkable
class Speaker(Protocol):
    """Text-to-speech output."""

    def speak(self, text: str) -> None:
        """Start speaking *text*, replacing anything currently spoken."""
        ...

    def cancel(self) -> None:
        """Stop any ongoing speech."""
        ...


@runtime_checkable
class Recorder(Protocol):
    """Audio capture."""

    async def start_recording(self) -> None: ...

    async def stop_recording(self) -> bytes:
        """Stop capturing and return the recorded audio."""
        ...


class SilentSpeaker:
    """Speaker used when no speech output is available."""

    def speak(self, text: str) -> None:
        return None

    def cancel(self) -> None:
        return None
