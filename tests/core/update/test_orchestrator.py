"""Tests for UpdateOrchestrator: backup, update and rollback."""

import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import orjson
import pytest
from conftest import (
    FakeConnectivity,
    FakeCoreTool,
    FakeReporter,
    make_module,
    write_file,
)

from update_plus.config import BackupPath
from update_plus.constants import BYTES_PER_MB
from update_plus.core.backup import ArchiveBuilder, BackupCatalog
from update_plus.core.report import JsonReportWriter
from update_plus.core.restore import RestoreEngine
from update_plus.core.update import (
    SkillUpdater,
    UpdateChecker,
    UpdateOptions,
    UpdateOrchestrator,
)
from update_plus.core.update.orchestrator import DiskUsage
from update_plus.domain.types import (
    BackupStatus,
    CoreUpdateStatus,
    ModuleStatus,
    RunStatus,
)
from update_plus.exceptions import PermissionOrSpaceError

RUN_TIME = datetime(2026, 1, 25, 12, 0, 0, tzinfo=timezone.utc)


class BreakingCoreTool(FakeCoreTool):
    """Core tool whose update damages the skills tree, then fails."""

    def __init__(self, skills: Path) -> None:
        super().__init__(fail_update=True)
        self.skills = skills

    async def update(self) -> None:
        write_file(self.skills / "alpha" / "SKILL.md", "corrupted")
        write_file(self.skills / "alpha" / "junk.bin", b"junk")
        await super().update()


@pytest.fixture
def skills(home: Path) -> Path:
    """Skills directory with two modules."""
    path = home / ".openclaw" / "skills"
    make_module(path, "alpha", {"SKILL.md": "v1"})
    make_module(path, "beta")
    return path


@pytest.fixture
def build(config, vcs):
    """Return a factory wiring an orchestrator around fakes."""

    def _build(
        cfg=None,
        core_tool=None,
        reachable=True,
        free_mb=10_000,
        reporter=None,
    ) -> UpdateOrchestrator:
        cfg = cfg or config
        catalog = BackupCatalog(cfg)
        core_tool = core_tool or FakeCoreTool(new_version="2026.2.0")
        updater = SkillUpdater(cfg, vcs)
        return UpdateOrchestrator(
            config=cfg,
            builder=ArchiveBuilder(cfg, clock=lambda: RUN_TIME),
            catalog=catalog,
            updater=updater,
            restorer=RestoreEngine(
                cfg, catalog, confirm=lambda _message: False
            ),
            core_tool=core_tool,
            connectivity=FakeConnectivity(reachable),
            reporter=reporter or FakeReporter(cfg.backup_dir),
            clock=lambda: RUN_TIME,
            disk_usage=lambda _path: DiskUsage(
                0, 0, free_mb * BYTES_PER_MB
            ),
            checker=UpdateChecker(core_tool, updater, vcs),
        )

    return _build


@pytest.mark.asyncio
async def test_successful_run(build, skills, vcs) -> None:
    """Test a clean run backs up, updates core and modules, succeeds."""
    vcs.upstream["alpha"] = "bbb2222"
    reporter = FakeReporter(Path("/unused"))
    orchestrator = build(reporter=reporter)

    run = await orchestrator.run(UpdateOptions())

    assert run.status is RunStatus.SUCCESS
    assert run.succeeded
    assert run.backup.status is BackupStatus.CREATED
    assert run.backup.filename == "openclaw-update-2026-01-25-12:00:00.tar.gz"
    assert run.core_update.status is CoreUpdateStatus.UPDATED
    assert run.core_update.from_version == "2026.1.1"
    assert run.core_update.to_version == "2026.2.0"
    assert [(m.name, m.status) for m in run.modules] == [
        ("alpha", ModuleStatus.UPDATED),
        ("beta", ModuleStatus.NO_CHANGE),
    ]
    assert reporter.summarized == [run]
    assert reporter.written == []


@pytest.mark.asyncio
async def test_core_failure_restores_backup(build, skills, vcs) -> None:
    """Test a failed core update restores the fresh backup exactly."""
    core_tool = BreakingCoreTool(skills)
    orchestrator = build(core_tool=core_tool)

    run = await orchestrator.run(UpdateOptions())

    assert run.status is RunStatus.FAILURE
    assert run.core_update.status is CoreUpdateStatus.FAILED
    assert run.core_update.rolled_back
    assert "update failed" in run.error
    assert (skills / "alpha" / "SKILL.md").read_text() == "v1"
    assert not (skills / "alpha" / "junk.bin").exists()
    # Modules are not touched once the run aborted
    assert run.modules == []
    assert not any(call[0] == "pull" for call in vcs.calls)


@pytest.mark.asyncio
async def test_backup_failure_aborts_without_force(
    build, config, home, skills
) -> None:
    """Test a failed backup stops the run before anything changes."""
    cfg = replace(
        config,
        backup_paths=(BackupPath(label="skills", path=home / "missing"),),
    )
    core_tool = FakeCoreTool(new_version="2026.2.0")

    run = await build(cfg=cfg, core_tool=core_tool).run(UpdateOptions())

    assert run.status is RunStatus.FAILURE
    assert run.backup.status is BackupStatus.FAILED
    assert "--force" in run.error
    assert core_tool.update_calls == 0


@pytest.mark.asyncio
async def test_backup_failure_continues_with_force(
    build, config, home, skills
) -> None:
    """Test --force carries on without a backup."""
    cfg = replace(
        config,
        backup_paths=(BackupPath(label="skills", path=home / "missing"),),
    )
    core_tool = FakeCoreTool(new_version="2026.2.0")

    run = await build(cfg=cfg, core_tool=core_tool).run(
        UpdateOptions(force=True)
    )

    assert run.backup.status is BackupStatus.FAILED
    assert core_tool.update_calls == 1
    assert run.status is RunStatus.SUCCESS


@pytest.mark.asyncio
async def test_backup_disabled(build, config, skills) -> None:
    """Test backup=False skips archive creation."""
    run = await build().run(UpdateOptions(backup=False))

    assert run.backup.status is BackupStatus.SKIPPED
    assert not list(config.backup_dir.glob("*.tar.gz"))
    assert run.succeeded


@pytest.mark.asyncio
async def test_insufficient_disk_space_aborts(build, config, skills) -> None:
    """Test the disk precheck stops the run before the backup."""
    core_tool = FakeCoreTool()

    run = await build(core_tool=core_tool, free_mb=0).run(UpdateOptions())

    assert run.status is RunStatus.FAILURE
    assert "insufficient disk space" in run.error
    assert run.backup.status is BackupStatus.PENDING
    assert core_tool.update_calls == 0


def test_check_disk_space_reports_free_mb(build, config) -> None:
    """Test the precheck returns free space and raises when short."""
    assert build(free_mb=750).check_disk_space() == 750

    with pytest.raises(PermissionOrSpaceError, match="0MB available"):
        build(free_mb=0).check_disk_space()


@pytest.mark.asyncio
async def test_disk_check_can_be_disabled(build, skills) -> None:
    """Test check_disk=False skips the precheck."""
    run = await build(free_mb=0).run(UpdateOptions(check_disk=False))

    assert run.succeeded


@pytest.mark.asyncio
async def test_offline_aborts(build, skills) -> None:
    """Test an unreachable network is fatal."""
    core_tool = FakeCoreTool()

    run = await build(core_tool=core_tool, reachable=False).run()

    assert run.status is RunStatus.FAILURE
    assert "cannot reach" in run.error
    assert core_tool.update_calls == 0


@pytest.mark.asyncio
async def test_missing_core_binary_is_fatal(build, skills, config) -> None:
    """Test a missing OpenClaw binary aborts without restoring."""
    write_file(skills / "alpha" / "SKILL.md", "current")
    core_tool = FakeCoreTool(installed=False)

    run = await build(core_tool=core_tool).run()

    assert run.core_update.status is CoreUpdateStatus.NOT_FOUND
    assert not run.core_update.rolled_back
    assert run.status is RunStatus.FAILURE
    assert (skills / "alpha" / "SKILL.md").read_text() == "current"


@pytest.mark.asyncio
async def test_module_failure_is_partial_failure(build, skills, vcs) -> None:
    """Test one failing module fails the run but others still update."""
    vcs.dirty.add("alpha")
    vcs.upstream["beta"] = "ccc3333"

    run = await build().run()

    assert run.status is RunStatus.FAILURE
    assert run.error is None
    assert [m.name for m in run.failed_modules] == ["alpha"]
    assert [m.name for m in run.updated_modules] == ["beta"]
    report = run.to_dict()
    assert report["skills_failed"] == [
        {
            "name": "alpha",
            "status": "failed",
            "error": "local changes detected",
        }
    ]


@pytest.mark.asyncio
async def test_notification_is_sent(build, skills) -> None:
    """Test --notify sends the summary through the core tool."""
    core_tool = FakeCoreTool(new_version="2026.2.0")

    await build(core_tool=core_tool).run(UpdateOptions(notify=True))

    assert len(core_tool.messages) == 1
    assert core_tool.messages[0].startswith("🔄 OpenClaw Update Report")
    assert "Status: success" in core_tool.messages[0]


@pytest.mark.asyncio
async def test_notification_failure_is_not_fatal(
    build, skills, caplog
) -> None:
    """Test a failed notification only logs a warning."""
    core_tool = FakeCoreTool(fail_message=True)

    run = await build(core_tool=core_tool).run(UpdateOptions(notify=True))

    assert run.succeeded
    assert "Could not send notification" in caplog.text


@pytest.mark.asyncio
async def test_json_report_written(build, config, skills) -> None:
    """Test --json-report writes the structured report."""
    reporter = JsonReportWriter(config.backup_dir)

    run = await build(reporter=reporter).run(UpdateOptions(json_report=True))

    path = reporter.report_path(run)
    data = orjson.loads(path.read_bytes())
    assert data["status"] == "success"
    assert data["backup"]["status"] == "created"
    assert data["core_update"]["to_version"] == "2026.2.0"
    assert {m["name"] for m in data["skills_updated"]} == {"alpha", "beta"}


@pytest.mark.asyncio
async def test_retention_applied_after_run(build, config, skills) -> None:
    """Test the run trims archives beyond backup_count."""
    cfg = replace(config, backup_count=1)
    old = write_file(
        cfg.backup_dir / "openclaw-update-2026-01-01-00:00:00.tar.gz", b"x"
    )
    os.utime(old, (1_700_000_000, 1_700_000_000))

    run = await build(cfg=cfg).run()

    assert run.succeeded
    assert not old.exists()
    assert (cfg.backup_dir / run.backup.filename).exists()


@pytest.mark.asyncio
async def test_dry_run_changes_nothing(build, config, skills, vcs) -> None:
    """Test a dry run reports module lag without backing up or pulling."""
    cfg = replace(config, excluded_skills=frozenset({"beta"}))
    vcs.upstream["alpha"] = "bbb2222"
    vcs.behind["alpha"] = 3
    core_tool = FakeCoreTool(new_version="2026.2.0")
    reporter = FakeReporter(cfg.backup_dir)
    orchestrator = build(cfg=cfg, core_tool=core_tool, reporter=reporter)

    run = await orchestrator.run(
        UpdateOptions(dry_run=True, notify=True, json_report=True)
    )

    assert run.dry_run
    assert run.status is RunStatus.SUCCESS
    assert run.backup.status is BackupStatus.SKIPPED
    assert run.backup.filename == "openclaw-update-2026-01-25-12:00:00.tar.gz"
    assert not list(cfg.backup_dir.glob("*.tar.gz*"))
    assert run.core_update.status is CoreUpdateStatus.SKIPPED
    assert run.core_update.from_version == "2026.1.1"
    assert core_tool.update_calls == 0
    assert core_tool.messages == []
    assert not any(call[0] == "pull" for call in vcs.calls)
    assert vcs.revisions.get("alpha", "aaa1111") == "aaa1111"
    assert {m.name: m.reason for m in run.modules} == {
        "alpha": "dry-run, 3 commits behind",
        "beta": "excluded",
    }
    assert all(m.status is ModuleStatus.SKIPPED for m in run.modules)
    assert reporter.summarized == [run]
    assert reporter.written == []
    assert run.to_dict()["dry_run"] is True


@pytest.mark.asyncio
async def test_dry_run_keeps_old_backups(build, config, skills) -> None:
    """Test a dry run never trims existing archives."""
    cfg = replace(config, backup_count=1)
    old = write_file(
        cfg.backup_dir / "openclaw-update-2026-01-01-00:00:00.tar.gz", b"x"
    )
    os.utime(old, (1_700_000_000, 1_700_000_000))
    newer = write_file(
        cfg.backup_dir / "openclaw-update-2026-01-02-00:00:00.tar.gz", b"x"
    )

    run = await build(cfg=cfg).run(UpdateOptions(dry_run=True))

    assert run.succeeded
    assert old.exists()
    assert newer.exists()


@pytest.mark.asyncio
async def test_dry_run_reports_unreachable_module(build, skills, vcs) -> None:
    """Test a failed fetch is reported in the dry run, not raised."""
    vcs.fetch_failures.add("beta")

    run = await build().run(UpdateOptions(dry_run=True))

    reasons = {m.name: m.reason for m in run.modules}
    assert reasons["alpha"] == "dry-run, up to date"
    assert reasons["beta"].startswith("dry-run, could not check")
    assert run.succeeded


@pytest.mark.asyncio
async def test_dry_run_still_needs_core_binary(build, skills) -> None:
    """Test a dry run still aborts when OpenClaw is not installed."""
    run = await build(core_tool=FakeCoreTool(installed=False)).run(
        UpdateOptions(dry_run=True)
    )

    assert run.core_update.status is CoreUpdateStatus.NOT_FOUND
    assert run.status is RunStatus.FAILURE
