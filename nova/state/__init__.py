"""Session state: models, persistence and the state owner."""

from nova.state.models import BackupDocument, Memory, MemoryCategory, Message, Role
from nova.state.session import ChangeKind, SessionState, StateChange
from nova.state.store import StateStore

__all__ = [
    "BackupDocument",
    "ChangeKind",
    "Memory",
    "MemoryCategory",
    "Message",
    "Role",
    "SessionState",
    "StateChange",
    "StateStore",
]
