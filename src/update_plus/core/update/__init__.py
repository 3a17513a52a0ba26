"""Module updates, update checks and the update orchestrator."""

from update_plus.core.update.check import UpdateChecker
from update_plus.core.update.orchestrator import (
    UpdateOptions,
    UpdateOrchestrator,
)
from update_plus.core.update.skills import SkillUpdater

__all__ = [
    "SkillUpdater",
    "UpdateChecker",
    "UpdateOptions",
    "UpdateOrchestrator",
]
