"""Model selection for the chat and memory roles."""

import logging

from nova.config import settings

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-1-20250805",
}

FRIENDLY_NAMES: dict[str, str] = {v: k for k, v in MODEL_MAP.items()}


def resolve(name_or_id: str) -> str | None:
    """Return the full model ID for a friendly name or known ID, else None."""
    name_or_id = name_or_id.strip().lower()
    if name_or_id in MODEL_MAP:
        return MODEL_MAP[name_or_id]
    if name_or_id in FRIENDLY_NAMES:
        return name_or_id
    return None


def friendly(model_id: str) -> str:
    return FRIENDLY_NAMES.get(model_id, model_id)


class ModelManager:
    """Tracks the active chat model (replies, greetings, nudges) and the
    memory model (fact extraction).

    Shared instance via ``ModelManager.get()``.
    """

    _instance: "ModelManager | None" = None

    def __init__(self) -> None:
        self.chat_model = resolve(settings.default_chat_model) or MODEL_MAP["sonnet"]
        self.memory_model = resolve(settings.default_memory_model) or MODEL_MAP["haiku"]
        logger.info(
            "Models: chat=%s, memory=%s", friendly(self.chat_model), friendly(self.memory_model)
        )

    @classmethod
    def get(cls) -> "ModelManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        cls._instance = None

    def set_chat_model(self, name: str) -> str | None:
        """Switch the chat model. Returns the full ID, or None if unknown."""
        model_id = resolve(name)
        if model_id:
            self.chat_model = model_id
            logger.info("Chat model → %s", friendly(model_id))
        return model_id
