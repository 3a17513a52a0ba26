"""Domain types for backup, restore and update workflows.

This module contains pure domain types without IO beyond reading file
metadata for archives.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from update_plus.constants import (
    ARCHIVE_SUFFIX,
    BACKUP_ID_PATTERN,
    ENCRYPTED_SUFFIX,
)

_ARCHIVE_NAME_RE = re.compile(
    rf"^(?P<prefix>.+)-(?P<identifier>{BACKUP_ID_PATTERN})"
    rf"{re.escape(ARCHIVE_SUFFIX)}(?:{re.escape(ENCRYPTED_SUFFIX)})?$"
)


class ArchiveFormat(Enum):
    """On-disk layout of an extracted archive."""

    LEGACY = "legacy"
    LABELED = "labeled"


@dataclass(frozen=True)
class PathEntry:
    """A label and the directory captured under it."""

    label: str
    source: Path


@dataclass(frozen=True)
class BackupArchive:
    """A backup archive in a storage location.

    Attributes:
        path: Absolute path of the archive file.
        identifier: Timestamp part of the name (YYYY-MM-DD-HH:MM:SS), None
            for archives not following the naming convention.
        encrypted: Whether the archive carries the .gpg envelope.
        size: Size in bytes.
        created: Modification time of the archive file.
        format: Storage format when known (always LABELED for new archives).
        entries: PathEntries captured in the archive when known.

    """

    path: Path
    identifier: str | None
    encrypted: bool
    size: int
    created: datetime
    format: ArchiveFormat | None = None
    entries: tuple[PathEntry, ...] = ()

    @property
    def name(self) -> str:
        """Archive file name, used as the backup id."""
        return self.path.name

    @classmethod
    def from_path(
        cls,
        path: Path,
        archive_format: ArchiveFormat | None = None,
        entries: tuple[PathEntry, ...] = (),
    ) -> BackupArchive:
        """Describe an existing archive file.

        Args:
            path: Archive file path
            archive_format: Known storage format, if any
            entries: Known PathEntries, if any

        Returns:
            BackupArchive built from the file name and its stat data

        """
        stat = path.stat()
        return cls(
            path=path,
            identifier=parse_backup_identifier(path.name),
            encrypted=path.name.endswith(ENCRYPTED_SUFFIX),
            size=stat.st_size,
            created=datetime.fromtimestamp(stat.st_mtime).astimezone(),
            format=archive_format,
            entries=entries,
        )


def parse_backup_identifier(name: str) -> str | None:
    """Extract the timestamp identifier from an archive name.

    Example:
        >>> parse_backup_identifier("backup-2026-01-25-12:00:00.tar.gz")
        '2026-01-25-12:00:00'

    """
    match = _ARCHIVE_NAME_RE.match(name)
    return match.group("identifier") if match else None


def is_archive_name(name: str) -> bool:
    """Return True for plain or encrypted archive file names."""
    return name.endswith((ARCHIVE_SUFFIX, ARCHIVE_SUFFIX + ENCRYPTED_SUFFIX))


@dataclass(frozen=True)
class ModuleRepository:
    """A git-tracked module directory.

    Dirty state and revision pointer are queried live from the version
    control collaborator and are never cached here.
    """

    name: str
    path: Path
    source_label: str = ""
    excluded: bool = False


class ModuleStatus(Enum):
    """Outcome of updating one module."""

    UPDATED = "updated"
    NO_CHANGE = "no_change"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ModuleOutcome:
    """Result of SkillUpdater.update() for one module."""

    name: str
    status: ModuleStatus
    from_revision: str | None = None
    to_revision: str | None = None
    reason: str | None = None

    @property
    def failed(self) -> bool:
        """Whether the module update failed."""
        return self.status is ModuleStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the update report."""
        data: dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.from_revision is not None:
            data["from_commit"] = self.from_revision
        if self.to_revision is not None:
            data["to_commit"] = self.to_revision
        if self.reason is not None:
            data["error" if self.failed else "reason"] = self.reason
        return data


class BackupStatus(Enum):
    """Outcome of the backup stage of an update run."""

    PENDING = "pending"
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class BackupOutcome:
    """Backup stage result."""

    status: BackupStatus = BackupStatus.PENDING
    filename: str | None = None
    size: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the update report."""
        data: dict[str, Any] = {"status": self.status.value}
        if self.filename is not None:
            data["filename"] = self.filename
        if self.size is not None:
            data["size"] = self.size
        if self.error is not None:
            data["error"] = self.error
        return data


class CoreUpdateStatus(Enum):
    """Outcome of the OpenClaw binary update stage."""

    PENDING = "pending"
    UPDATED = "updated"
    NO_CHANGE = "no_change"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    SKIPPED = "skipped"


@dataclass
class CoreUpdateOutcome:
    """Core tool update result with before/after versions."""

    status: CoreUpdateStatus = CoreUpdateStatus.PENDING
    from_version: str | None = None
    to_version: str | None = None
    error: str | None = None
    rolled_back: bool = False

    @property
    def failed(self) -> bool:
        """Whether the core update stage failed."""
        return self.status in (
            CoreUpdateStatus.FAILED,
            CoreUpdateStatus.NOT_FOUND,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the update report."""
        data: dict[str, Any] = {"status": self.status.value}
        if self.from_version is not None:
            data["from_version"] = self.from_version
        if self.to_version is not None:
            data["to_version"] = self.to_version
        if self.error is not None:
            data["error"] = self.error
        if self.rolled_back:
            data["rolled_back"] = True
        return data


class RunStatus(Enum):
    """Overall status of an update run."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class UpdateRun:
    """State and outcome of one update run.

    Attributes:
        timestamp: Start time of the run.
        backup: Backup stage outcome.
        core_update: Core tool update outcome.
        modules: Per-module outcomes in processing order.
        status: Overall status, set by finalize().
        error: Message of the fatal condition that aborted the run.
        dry_run: Whether the run only reported what it would change.

    """

    timestamp: datetime
    backup: BackupOutcome = field(default_factory=BackupOutcome)
    core_update: CoreUpdateOutcome = field(default_factory=CoreUpdateOutcome)
    modules: list[ModuleOutcome] = field(default_factory=list)
    status: RunStatus = RunStatus.PENDING
    error: str | None = None
    dry_run: bool = False

    @property
    def updated_modules(self) -> list[ModuleOutcome]:
        """Modules that did not fail (updated, unchanged or skipped)."""
        return [outcome for outcome in self.modules if not outcome.failed]

    @property
    def failed_modules(self) -> list[ModuleOutcome]:
        """Modules whose update failed."""
        return [outcome for outcome in self.modules if outcome.failed]

    @property
    def succeeded(self) -> bool:
        """Whether the run finished successfully."""
        return self.status is RunStatus.SUCCESS

    def abort(self, message: str) -> None:
        """Record a fatal condition and mark the run failed."""
        self.error = message
        self.status = RunStatus.FAILURE

    def finalize(self) -> RunStatus:
        """Compute the overall status from the stage outcomes.

        Partial module failures surface as an overall failure.
        """
        if (
            self.error is not None
            or self.core_update.failed
            or self.failed_modules
        ):
            self.status = RunStatus.FAILURE
        else:
            self.status = RunStatus.SUCCESS
        return self.status

    def to_dict(self) -> dict[str, Any]:
        """Serialize into the structured report object."""
        data: dict[str, Any] = {
            "run_timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "backup": self.backup.to_dict(),
            "core_update": self.core_update.to_dict(),
            "skills_updated": [m.to_dict() for m in self.updated_modules],
            "skills_failed": [m.to_dict() for m in self.failed_modules],
        }
        if self.dry_run:
            data["dry_run"] = True
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class TrimResult:
    """Archives deleted by a retention trim."""

    local: tuple[str, ...] = ()
    remote: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlanEntry:
    """One label of a restore plan.

    Attributes:
        label: Top-level directory name in the archive.
        target: Destination directory, None when the label has no mapping.
        selected: False when a label filter excludes this entry.

    """

    label: str
    target: Path | None
    selected: bool = True

    @property
    def unknown(self) -> bool:
        """Whether the label has no target mapping."""
        return self.target is None


@dataclass(frozen=True)
class RestorePlan:
    """Ordered label -> target entries for a labeled restore."""

    entries: tuple[PlanEntry, ...]
    label_filter: str | None = None

    @property
    def selected(self) -> tuple[PlanEntry, ...]:
        """Entries that will be restored or reported unknown."""
        return tuple(entry for entry in self.entries if entry.selected)

    @property
    def skipped(self) -> tuple[PlanEntry, ...]:
        """Entries excluded by the label filter."""
        return tuple(entry for entry in self.entries if not entry.selected)


@dataclass(frozen=True)
class SanitizeReport:
    """Outcome of a path rehoming pass.

    Attributes:
        original_home: Detected home path of the source host, None when no
            candidate was found.
        replacement: Path written in its place, None when nothing changed.
        files_changed: Number of files rewritten.
        remaining: Occurrences of the original home left after rewriting.

    """

    original_home: str | None = None
    replacement: str | None = None
    files_changed: int = 0
    remaining: int = 0

    @property
    def changed(self) -> bool:
        """Whether any file was rewritten."""
        return self.files_changed > 0


class RestoreStage(Enum):
    """Stages of the restore state machine, in order.

    A failed restore records ABORTED in place of APPLIED; every restore,
    failed or not, ends in CLEANED.
    """

    IDLE = "idle"
    LOCATED = "located"
    DECRYPTED = "decrypted"
    EXTRACTED = "extracted"
    SANITIZED = "sanitized"
    PLAN_BUILT = "plan_built"
    CONFIRMED = "confirmed"
    APPLIED = "applied"
    ABORTED = "aborted"
    CLEANED = "cleaned"


@dataclass
class RestoreResult:
    """Outcome of RestoreEngine.restore().

    stages records every state the restore passed through, in order.
    """

    backup_name: str
    format: ArchiveFormat | None = None
    restored: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cancelled: bool = False
    merged: bool = False
    config_restored: bool = False
    stages: list[RestoreStage] = field(default_factory=list)
    sanitize: SanitizeReport | None = None

    @property
    def stage(self) -> RestoreStage:
        """Current state of the restore."""
        return self.stages[-1] if self.stages else RestoreStage.IDLE

    def advance(self, stage: RestoreStage) -> None:
        """Record a state transition."""
        self.stages.append(stage)

    @property
    def success(self) -> bool:
        """Whether the restore counts as successful.

        Declining the confirmation is a successful no-op. A legacy restore
        succeeds when the merge finished; a labeled restore when at least
        one requested label was restored.
        """
        if self.cancelled:
            return True
        if self.format is ArchiveFormat.LEGACY:
            return self.merged
        return bool(self.restored)


@dataclass(frozen=True)
class ModuleCheck:
    """Pending upstream commits for one module."""

    name: str
    behind: int | None = None
    excluded: bool = False
    error: str | None = None


@dataclass(frozen=True)
class CheckReport:
    """Available updates, computed without applying them."""

    installed_version: str | None
    latest_version: str | None
    update_available: bool
    modules: tuple[ModuleCheck, ...] = ()

    @property
    def modules_behind(self) -> tuple[ModuleCheck, ...]:
        """Modules with at least one upstream commit pending."""
        return tuple(m for m in self.modules if m.behind)
