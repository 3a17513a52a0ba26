"""Tests for SkillUpdater: dirty guard, pull and rollback."""

import shutil
import subprocess
from dataclasses import replace
from pathlib import Path

import pytest
from conftest import make_module

from update_plus.config import SkillsDirectory
from update_plus.core.update import SkillUpdater
from update_plus.domain.types import ModuleRepository, ModuleStatus
from update_plus.infrastructure.git import GitClient


@pytest.fixture
def skills(home: Path) -> Path:
    """Skills directory with three modules and one plain directory."""
    path = home / ".openclaw" / "skills"
    for name in ("alpha", "beta", "gamma"):
        make_module(path, name)
    (path / "not-a-module").mkdir()
    return path


def test_discover_lists_git_modules_in_order(config, skills: Path) -> None:
    """Test only directories holding .git are modules, sorted by name."""
    cfg = replace(config, excluded_skills=frozenset({"beta"}))

    modules = SkillUpdater(cfg, vcs=None).discover()

    assert [m.name for m in modules] == ["alpha", "beta", "gamma"]
    assert [m.excluded for m in modules] == [False, True, False]
    assert {m.source_label for m in modules} == {"skills"}


def test_discover_skips_directories_without_update(
    config, skills: Path, home: Path
) -> None:
    """Test skills directories with update disabled are not scanned."""
    dev = home / ".openclaw" / "skills-dev"
    make_module(dev, "experimental")
    cfg = replace(
        config,
        skills_dirs=(
            SkillsDirectory(path=skills, update=False),
            SkillsDirectory(path=dev, label="dev"),
            SkillsDirectory(path=home / "missing"),
        ),
    )

    modules = SkillUpdater(cfg, vcs=None).discover()

    assert [(m.name, m.source_label) for m in modules] == [
        ("experimental", "dev")
    ]


@pytest.mark.asyncio
async def test_update_reports_new_revision(config, skills, vcs) -> None:
    """Test a successful pull reports before and after revisions."""
    vcs.revisions["alpha"] = "abc1234"
    vcs.upstream["alpha"] = "def5678"
    module = ModuleRepository("alpha", skills / "alpha")

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.UPDATED
    assert outcome.from_revision == "abc1234"
    assert outcome.to_revision == "def5678"


@pytest.mark.asyncio
async def test_update_without_upstream_change(config, skills, vcs) -> None:
    """Test an unchanged revision is reported as no_change."""
    module = ModuleRepository("alpha", skills / "alpha")

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.NO_CHANGE


@pytest.mark.asyncio
async def test_dirty_module_is_never_touched(config, skills, vcs) -> None:
    """Test local changes block both the pull and any reset."""
    vcs.dirty.add("alpha")
    module = ModuleRepository("alpha", skills / "alpha")

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.reason == "local changes detected"
    assert ("pull", "alpha") not in vcs.calls
    assert not any(call[0] == "reset_hard" for call in vcs.calls)


@pytest.mark.asyncio
async def test_failed_pull_rolls_back_exactly(config, skills, vcs) -> None:
    """Test a failed pull resets HEAD to the recorded revision."""
    vcs.revisions["alpha"] = "abc1234"
    vcs.pull_failures.add("alpha")
    module = ModuleRepository("alpha", skills / "alpha")

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.reason == "pull failed, rolled back"
    assert ("reset_hard", "alpha", "abc1234") in vcs.calls
    assert vcs.revisions["alpha"] == "abc1234"


@pytest.mark.asyncio
async def test_failed_rollback_is_reported(config, skills, vcs) -> None:
    """Test a failing reset is reported as a rollback failure."""
    vcs.pull_failures.add("alpha")
    vcs.reset_failures.add("alpha")
    module = ModuleRepository("alpha", skills / "alpha")

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.reason == "pull failed, rollback failed"


@pytest.mark.asyncio
async def test_excluded_module_is_skipped(config, skills, vcs) -> None:
    """Test excluded modules are skipped without any git call."""
    module = ModuleRepository("alpha", skills / "alpha", excluded=True)

    outcome = await SkillUpdater(config, vcs).update(module)

    assert outcome.status is ModuleStatus.SKIPPED
    assert vcs.calls == []


@pytest.mark.asyncio
async def test_update_all_continues_after_failures(
    config, skills, vcs
) -> None:
    """Test module failures never stop the remaining modules."""
    vcs.dirty.add("alpha")
    vcs.pull_failures.add("beta")
    vcs.upstream["gamma"] = "fff0000"

    outcomes = await SkillUpdater(config, vcs).update_all()

    assert [(o.name, o.status) for o in outcomes] == [
        ("alpha", ModuleStatus.FAILED),
        ("beta", ModuleStatus.FAILED),
        ("gamma", ModuleStatus.UPDATED),
    ]


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
async def test_real_git_rollback_restores_revision(
    config, home: Path, tmp_path: Path
) -> None:
    """Test a diverged clone is reset to its exact pre-pull revision."""
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    _git(upstream, "init", "--quiet", "--initial-branch=main")
    _git(upstream, "config", "user.email", "dev@example.com")
    _git(upstream, "config", "user.name", "Dev")
    (upstream / "SKILL.md").write_text("v1\n")
    _git(upstream, "add", ".")
    _git(upstream, "commit", "--quiet", "-m", "v1")

    skills = home / ".openclaw" / "skills"
    clone = skills / "alpha"
    _git(skills, "clone", "--quiet", str(upstream), "alpha")
    _git(clone, "config", "user.email", "dev@example.com")
    _git(clone, "config", "user.name", "Dev")

    # Diverge both sides so a fast-forward pull is impossible
    (upstream / "SKILL.md").write_text("upstream\n")
    _git(upstream, "commit", "--quiet", "-am", "upstream")
    (clone / "LOCAL.md").write_text("local\n")
    _git(clone, "add", ".")
    _git(clone, "commit", "--quiet", "-m", "local")
    before = _git(clone, "rev-parse", "--short", "HEAD")

    module = ModuleRepository("alpha", clone)
    outcome = await SkillUpdater(config, GitClient()).update(module)

    assert outcome.status is ModuleStatus.FAILED
    assert outcome.reason == "pull failed, rolled back"
    assert _git(clone, "rev-parse", "--short", "HEAD") == before
    assert _git(clone, "status", "--porcelain") == ""
