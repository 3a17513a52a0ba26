"""Tests for the git adapter."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from update_plus.core.process import CommandResult
from update_plus.exceptions import VersionControlError
from update_plus.infrastructure.git import GitClient

MODULE = Path("/skills/alpha")


@pytest.fixture
def run_command():
    """Patch run_command in the git adapter."""
    with patch(
        "update_plus.infrastructure.git.run_command", new_callable=AsyncMock
    ) as mock_run:
        mock_run.return_value = CommandResult(0, "", "")
        yield mock_run


@pytest.mark.asyncio
async def test_is_dirty(run_command: AsyncMock) -> None:
    """Test porcelain output decides the dirty state."""
    run_command.return_value = CommandResult(0, " M SKILL.md\n", "")

    assert await GitClient().is_dirty(MODULE)
    run_command.assert_awaited_once_with(
        "git", "-C", "/skills/alpha", "status", "--porcelain"
    )


@pytest.mark.asyncio
async def test_clean_tree(run_command: AsyncMock) -> None:
    """Test empty porcelain output means clean."""
    assert not await GitClient().is_dirty(MODULE)


@pytest.mark.asyncio
async def test_current_revision(run_command: AsyncMock) -> None:
    """Test the short hash is stripped."""
    run_command.return_value = CommandResult(0, "abc1234\n", "")

    assert await GitClient().current_revision(MODULE) == "abc1234"


@pytest.mark.asyncio
async def test_pull_failure_returns_false(run_command: AsyncMock) -> None:
    """Test a failed pull is reported without raising."""
    run_command.return_value = CommandResult(
        1, "", "fatal: Not possible to fast-forward"
    )

    assert await GitClient().pull(MODULE) is False
    args = run_command.await_args.args
    assert args[3:] == ("pull", "--ff-only", "--quiet")


@pytest.mark.asyncio
async def test_reset_hard_failure_raises(run_command: AsyncMock) -> None:
    """Test reset failures raise VersionControlError for the module."""
    run_command.return_value = CommandResult(128, "", "cannot lock ref")

    with pytest.raises(VersionControlError) as exc_info:
        await GitClient().reset_hard(MODULE, "abc1234")

    assert exc_info.value.target == "alpha"
    assert exc_info.value.message == "cannot lock ref"


@pytest.mark.asyncio
async def test_commits_behind(run_command: AsyncMock) -> None:
    """Test rev-list counts are parsed."""
    run_command.return_value = CommandResult(0, "4\n", "")

    assert await GitClient().commits_behind(MODULE) == 4


@pytest.mark.asyncio
async def test_commits_behind_garbage(run_command: AsyncMock) -> None:
    """Test unparseable counts raise."""
    run_command.return_value = CommandResult(0, "lots\n", "")

    with pytest.raises(VersionControlError, match="unexpected rev-list"):
        await GitClient().commits_behind(MODULE)
