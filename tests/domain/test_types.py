"""Tests for domain types."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from update_plus.domain.types import (
    ArchiveFormat,
    BackupArchive,
    CoreUpdateStatus,
    ModuleOutcome,
    ModuleStatus,
    RestoreResult,
    RestoreStage,
    RunStatus,
    UpdateRun,
    is_archive_name,
    parse_backup_identifier,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("openclaw-update-2026-01-25-12:00:00.tar.gz", "2026-01-25-12:00:00"),
        (
            "openclaw-update-2026-01-25-12:00:00.tar.gz.gpg",
            "2026-01-25-12:00:00",
        ),
        ("custom-2026-01-25-12:00:00.tar.gz", "2026-01-25-12:00:00"),
        ("manual-backup.tar.gz", None),
        ("openclaw-update-2026-01-25.tar.gz", None),
    ],
)
def test_parse_backup_identifier(name: str, expected) -> None:
    """Test timestamp identifiers are read from archive names."""
    assert parse_backup_identifier(name) == expected


def test_is_archive_name() -> None:
    """Test plain and encrypted archives are recognized."""
    assert is_archive_name("a.tar.gz")
    assert is_archive_name("a.tar.gz.gpg")
    assert not is_archive_name("report-2026-01-25-12:00:00.json")


def test_archive_from_path(tmp_path: Path) -> None:
    """Test archive metadata comes from the name and stat data."""
    path = tmp_path / "openclaw-update-2026-01-25-12:00:00.tar.gz.gpg"
    path.write_bytes(b"12345")
    os.utime(path, (1_700_000_000, 1_700_000_000))

    archive = BackupArchive.from_path(path)

    assert archive.name == path.name
    assert archive.identifier == "2026-01-25-12:00:00"
    assert archive.encrypted
    assert archive.size == 5
    assert archive.created.timestamp() == 1_700_000_000


def test_module_outcome_serialization() -> None:
    """Test failure reasons are reported as "error"."""
    failed = ModuleOutcome("a", ModuleStatus.FAILED, reason="boom")
    skipped = ModuleOutcome("b", ModuleStatus.SKIPPED, reason="excluded")

    assert failed.to_dict() == {
        "name": "a",
        "status": "failed",
        "error": "boom",
    }
    assert skipped.to_dict() == {
        "name": "b",
        "status": "skipped",
        "reason": "excluded",
    }


def test_run_finalize() -> None:
    """Test core failures and module failures fail the run."""
    run = UpdateRun(timestamp=datetime(2026, 1, 25, tzinfo=timezone.utc))
    assert run.finalize() is RunStatus.SUCCESS

    run.core_update.status = CoreUpdateStatus.NOT_FOUND
    assert run.finalize() is RunStatus.FAILURE

    run.core_update.status = CoreUpdateStatus.UPDATED
    run.modules.append(ModuleOutcome("x", ModuleStatus.FAILED, reason="r"))
    assert run.finalize() is RunStatus.FAILURE
    assert not run.succeeded


def test_restore_result_success_rules() -> None:
    """Test success for cancelled, legacy and labeled restores."""
    result = RestoreResult("a.tar.gz")
    assert result.stage is RestoreStage.IDLE
    assert not result.success

    result.cancelled = True
    assert result.success

    legacy = RestoreResult("a.tar.gz", format=ArchiveFormat.LEGACY)
    assert not legacy.success
    legacy.merged = True
    assert legacy.success

    labeled = RestoreResult("a.tar.gz", format=ArchiveFormat.LABELED)
    labeled.unknown.append("mystery")
    assert not labeled.success
    labeled.restored.append("skills")
    labeled.advance(RestoreStage.APPLIED)
    assert labeled.success
    assert labeled.stage is RestoreStage.APPLIED
