"""Interactive terminal host for the conversation engine."""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import TYPE_CHECKING

from nova.console.handlers import COMMANDS
from nova.engine.indicators import LAST_FACT
from nova.state.models import Role
from nova.state.session import ChangeKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from nova.engine.orchestrator import Orchestrator
    from nova.state.session import StateChange

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"quit", "exit"}


class ConsoleApp:
    """Reads lines from the terminal and renders engine events.

    Args:
        orchestrator: The engine to drive.
        read_line: Blocking line reader (defaults to ``input``); it runs in
            a worker thread so timers keep firing while waiting.
        write: Output function (defaults to ``print``).
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        *,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self.orchestrator = orchestrator
        self._read_line = read_line
        self._write = write

    def print(self, text: str) -> None:
        self._write(text)

    async def prompt(self, text: str) -> str:
        return await asyncio.to_thread(self._read_line, text)

    async def confirm(self, question: str) -> bool:
        answer = await self.prompt(f"{question} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    # -- Rendering -------------------------------------------------------------

    def _on_state_change(self, change: StateChange) -> None:
        if change.kind == ChangeKind.MESSAGE and change.message.role == Role.MODEL:
            self.print(f"Nova: {change.message.text}")
        elif change.kind == ChangeKind.REPLACED:
            self.render_transcript()

    def _on_indicator(self, name: str, value: object) -> None:
        if name == LAST_FACT:
            self.print(f"(remembered: {value})")

    def render_transcript(self) -> None:
        for message in self.orchestrator.state.messages:
            speaker = "Nova" if message.role == Role.MODEL else "You"
            self.print(f"{speaker}: {message.text}")

    # -- Main loop -------------------------------------------------------------

    async def handle_line(self, line: str) -> bool:
        """Process one line of input. Returns False when the user quits."""
        line = line.strip()
        if not line:
            return True

        if line.startswith("/"):
            try:
                name, *args = shlex.split(line[1:]) or [""]
            except ValueError as exc:
                self.print(f"Could not parse command: {exc}")
                return True
            name = name.lower()
            if name in QUIT_COMMANDS:
                return False
            handler = COMMANDS.get(name)
            if handler is None:
                self.print(f"Unknown command /{name}. Type /help for a list.")
                return True
            await handler(self, args)
            return True

        turn = await self.orchestrator.submit_text(line)
        if turn is not None:
            await turn.reply
        return True

    async def run(self) -> None:
        orch = self.orchestrator
        await orch.load()
        self.render_transcript()
        orch.state.subscribe(self._on_state_change)
        orch.indicators.subscribe(self._on_indicator)
        await orch.start()

        try:
            while True:
                try:
                    line = await self.prompt("> ")
                except EOFError:
                    break
                if not await self.handle_line(line):
                    break
        finally:
            await orch.stop()
