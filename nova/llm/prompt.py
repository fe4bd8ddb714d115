"""Prompt assembly for the language service operations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nova.state.models import Memory, Message

ASSISTANT_NAME = "Nova"

EXTRACTION_SYSTEM = """\
You decide whether a user's chat message states something about themselves \
that is worth remembering long term: a lasting fact, preference, belief, \
plan or piece of personal history.

Remember things like "I'm allergic to peanuts", "My name is Sarah", \
"I hate horror movies", "I'm training for a marathon".
Ignore greetings, questions, small talk and reactions such as "Hello", \
"How are you?", "Tell me a joke", "That's cool".

Respond with JSON only, no prose:
{"has_fact": true|false, "fact": "<one concise sentence about the user>", \
"category": "preference"|"fact"|"history"|"other"}
"""

REPLY_SYSTEM = """\
You are {name}, a warm, witty and attentive companion with a long-term memory.

Use the known facts below to personalize what you say. When the user asks \
about something you were told before, answer from these facts.

Tone: affectionate and playful, but grounded. Keep replies conversational.

## Known facts about the user
{facts}
"""

NO_FACTS = "No facts stored yet."
NO_MEMORIES = "None yet."


def format_memories(memories: Sequence[Memory], empty: str = NO_MEMORIES) -> str:
    if not memories:
        return empty
    return "\n".join(f"- {m.text}" for m in memories)


def build_extraction_prompt(utterance: str) -> str:
    return f"<message>\n{utterance}\n</message>\n\nReturn JSON only."


def build_reply_system(memories: Sequence[Memory]) -> str:
    return REPLY_SYSTEM.format(name=ASSISTANT_NAME, facts=format_memories(memories, NO_FACTS))


def to_api_messages(history: Sequence[Message], utterance: str) -> list[dict[str, str]]:
    """Convert transcript entries plus the new utterance to Claude messages.

    The API needs alternating roles starting with ``user``, so consecutive
    entries with the same role are joined and a leading assistant turn gets
    a placeholder user turn in front of it.
    """
    turns: list[dict[str, str]] = []
    entries = [("assistant" if m.role == "model" else "user", m.text) for m in history]
    entries.append(("user", utterance))
    for role, text in entries:
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] += f"\n\n{text}"
        else:
            turns.append({"role": role, "content": text})
    if turns[0]["role"] == "assistant":
        turns.insert(0, {"role": "user", "content": "(conversation continues)"})
    return turns


def time_of_day(now: datetime) -> str:
    if now.hour < 12:
        return "morning"
    if now.hour < 18:
        return "afternoon"
    return "evening"


def build_welcome_prompt(
    memories: Sequence[Memory],
    last_message_at: datetime | None,
    now: datetime | None = None,
) -> str:
    now = now or datetime.now(UTC)
    days_since = (now - last_message_at).days if last_message_at else 0
    return (
        f"You are {ASSISTANT_NAME}, an AI companion. The user has just come back.\n\n"
        f"Time of day: {time_of_day(now)}\n"
        f"Days since the last chat: {days_since} (0 means earlier today)\n"
        f"Known memories:\n{format_memories(memories)}\n\n"
        "Write a short, warm greeting of at most two sentences. If one of the "
        "memories gives you something to follow up on, ask about it. Do not "
        'open with "Welcome back". Output only the greeting.'
    )


def build_proactive_prompt(memories: Sequence[Memory]) -> str:
    return (
        f"You are {ASSISTANT_NAME}. The conversation has gone quiet.\n\n"
        f"Known memories:\n{format_memories(memories)}\n\n"
        "Ask one casual, curious question to get the user talking again. "
        "Look for something you don't know about them yet, or link two "
        "memories together; with nothing to go on, ask a fun hypothetical. "
        "Output only the question."
    )
