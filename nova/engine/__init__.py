"""Conversation engine: pipelines, scheduling, bootstrap, backups."""

from nova.engine.backup import BackupError, UnsupportedVersionError
from nova.engine.orchestrator import Orchestrator, Turn
from nova.engine.scheduler import ReengagementScheduler

__all__ = [
    "BackupError",
    "Orchestrator",
    "ReengagementScheduler",
    "Turn",
    "UnsupportedVersionError",
]
