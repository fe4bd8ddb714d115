"""Slash-command handlers for the console host."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from nova.audio.speech import AudioUnavailableError
from nova.config import settings
from nova.engine.backup import IMPORT_SUCCESS, BackupError, backup_filename
from nova.llm.models import MODEL_MAP, ModelManager, friendly

if TYPE_CHECKING:
    from nova.console.app import ConsoleApp

logger = logging.getLogger(__name__)

HELP = """\
Commands:
  /memories            list what Nova remembers (newest first)
  /export [path]       save a backup of memories and messages
  /import <path>       restore a backup (asks before overwriting)
  /voice <audio-file>  send a voice message from an audio file
  /mute                toggle spoken replies
  /model [name]        show or switch the chat model
  /status              show session status
  /quit                exit"""


async def handle_help(app: ConsoleApp, args: list[str]) -> None:
    app.print(HELP)


async def handle_memories(app: ConsoleApp, args: list[str]) -> None:
    memories = app.orchestrator.state.memories_newest_first()
    if not memories:
        app.print("No memories yet.")
        return
    for memory in memories:
        app.print(f"- [{memory.category}] {memory.text}")


async def handle_status(app: ConsoleApp, args: list[str]) -> None:
    orch = app.orchestrator
    lines = [
        f"Chat model: {friendly(ModelManager.get().chat_model)}",
        f"Memory model: {friendly(ModelManager.get().memory_model)}",
        f"Messages: {len(orch.state.messages)}",
        f"Memories: {len(orch.state.memories)}",
        f"Muted: {'yes' if orch.muted else 'no'}",
        f"Re-engagement armed: {'yes' if orch.scheduler.armed else 'no'}",
    ]
    app.print("\n".join(lines))


async def handle_model(app: ConsoleApp, args: list[str]) -> None:
    mm = ModelManager.get()
    if not args:
        app.print(f"Chat model: {friendly(mm.chat_model)} (options: {', '.join(MODEL_MAP)})")
        return
    if not mm.set_chat_model(args[0]):
        app.print(f"Unknown model '{args[0]}'. Valid options: {', '.join(MODEL_MAP)}")
        return
    app.print(f"Chat model → {friendly(mm.chat_model)}")


async def handle_mute(app: ConsoleApp, args: list[str]) -> None:
    muted = app.orchestrator.toggle_mute()
    app.print("Muted." if muted else "Unmuted.")


async def handle_export(app: ConsoleApp, args: list[str]) -> None:
    doc = app.orchestrator.export_backup()
    path = Path(args[0]) if args else settings.backup_dir / backup_filename(doc.exported_at)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(doc.to_json(), encoding="utf-8")
    except OSError as exc:
        logger.exception("Failed to write backup")
        app.print(f"Could not save backup: {exc}")
        return
    app.print(f"Saved {len(doc.memories)} memories and {len(doc.messages)} messages to {path}")


async def handle_import(app: ConsoleApp, args: list[str]) -> None:
    if not args:
        app.print("Usage: /import <path>")
        return
    try:
        raw = Path(args[0]).read_bytes()
    except OSError as exc:
        logger.error("FileReader error: %s", exc)
        app.print("Error reading file.")
        return

    try:
        restored = await app.orchestrator.import_backup(raw, app.confirm)
    except BackupError as exc:
        logger.error("Import error: %s", exc)
        app.print(f"Failed to import file: {exc}")
        return
    if restored:
        app.print(IMPORT_SUCCESS)


async def handle_voice(app: ConsoleApp, args: list[str]) -> None:
    if not args:
        app.print("Usage: /voice <audio-file>")
        return
    try:
        audio = Path(args[0]).read_bytes()
    except OSError:
        app.print(f"Can't open {args[0]}. Check the path and that the file is readable.")
        return
    try:
        turn = await app.orchestrator.submit_audio(audio)
    except AudioUnavailableError as exc:
        app.print(str(exc))
        return
    if turn is not None:
        app.print(f"(you said) {turn.user_message.text}")
        await turn.reply


COMMANDS = {
    "help": handle_help,
    "memories": handle_memories,
    "status": handle_status,
    "model": handle_model,
    "mute": handle_mute,
    "export": handle_export,
    "import": handle_import,
    "voice": handle_voice,
}
