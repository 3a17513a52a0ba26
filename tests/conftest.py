"""Pytest configuration and fixtures for update-plus tests.

This module provides shared test fixtures for all tests, including:
- A temporary home directory with an OpenClaw layout
- An immutable configuration pointing into that home
- In-memory fakes for the git, gpg, rclone and OpenClaw collaborators
"""

import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path

# Keep test runs out of the user's log file; must precede package imports
os.environ.setdefault(
    "UPDATE_PLUS_LOG_DIR", tempfile.mkdtemp(prefix="update-plus-test-logs-")
)

import pytest  # noqa: E402

from update_plus.config import (  # noqa: E402
    BackupPath,
    SkillsDirectory,
    UpdatePlusConfig,
)
from update_plus.domain.types import UpdateRun  # noqa: E402
from update_plus.exceptions import (  # noqa: E402
    CoreToolError,
    EncryptionError,
    RemoteStorageError,
    VersionControlError,
)

ENCRYPTED_MAGIC = b"FAKEGPG\n"


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation for update_plus loggers during tests.

    This allows pytest's caplog fixture to capture logs from all loggers,
    even those created with propagate=False in production code.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("update_plus"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logger = logging.getLogger(name)
        logger.propagate = propagate_value


# =============================================================================
# Filesystem helpers
# =============================================================================


def write_file(path: Path, content: str | bytes = "") -> Path:
    """Create parent directories and write content to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def make_module(
    skills_dir: Path, name: str, files: dict | None = None
) -> Path:
    """Create a git-tracked module directory with optional files."""
    module = skills_dir / name
    (module / ".git").mkdir(parents=True)
    for relative, content in (files or {"SKILL.md": f"# {name}\n"}).items():
        write_file(module / relative, content)
    return module


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Provide a home directory with an empty OpenClaw layout."""
    home_dir = tmp_path / "home" / "alice"
    (home_dir / ".openclaw" / "skills").mkdir(parents=True)
    return home_dir


@pytest.fixture
def config(home: Path) -> UpdatePlusConfig:
    """Provide a configuration rooted in the temporary home."""
    return UpdatePlusConfig(
        home=home,
        backup_dir=home / ".openclaw" / "backups",
        config_file=home / ".openclaw" / "openclaw.json",
        skills_dirs=(SkillsDirectory(path=home / ".openclaw" / "skills"),),
        min_free_mb=1,
    )


@pytest.fixture
def make_config(config: UpdatePlusConfig):
    """Return a factory deriving configurations from the default one."""

    def _make(**overrides) -> UpdatePlusConfig:
        return replace(config, **overrides)

    return _make


@pytest.fixture
def labeled_config(config: UpdatePlusConfig, home: Path) -> UpdatePlusConfig:
    """Configuration capturing skills and workspace under their labels."""
    return replace(
        config,
        backup_paths=(
            BackupPath(label="skills", path=home / ".openclaw" / "skills"),
            BackupPath(
                label="workspace", path=home / ".openclaw" / "workspace"
            ),
        ),
    )


# =============================================================================
# Collaborator fakes
# =============================================================================


class FakeVersionControl:
    """In-memory VersionControl keyed by module directory name."""

    def __init__(self) -> None:
        self.revisions: dict[str, str] = {}
        self.upstream: dict[str, str] = {}
        self.dirty: set[str] = set()
        self.pull_failures: set[str] = set()
        self.reset_failures: set[str] = set()
        self.fetch_failures: set[str] = set()
        self.behind: dict[str, int] = {}
        self.calls: list[tuple] = []

    async def is_dirty(self, path: Path) -> bool:
        self.calls.append(("is_dirty", path.name))
        return path.name in self.dirty

    async def current_revision(self, path: Path) -> str:
        return self.revisions.setdefault(path.name, "aaa1111")

    async def pull(self, path: Path) -> bool:
        self.calls.append(("pull", path.name))
        if path.name in self.pull_failures:
            # A failed merge can leave HEAD somewhere unexpected
            self.revisions[path.name] = "half-merged"
            return False
        if path.name in self.upstream:
            self.revisions[path.name] = self.upstream[path.name]
        return True

    async def reset_hard(self, path: Path, revision: str) -> None:
        self.calls.append(("reset_hard", path.name, revision))
        if path.name in self.reset_failures:
            msg = "cannot lock ref"
            raise VersionControlError(msg, target=path.name)
        self.revisions[path.name] = revision

    async def fetch(self, path: Path) -> None:
        self.calls.append(("fetch", path.name))
        if path.name in self.fetch_failures:
            msg = "could not resolve host"
            raise VersionControlError(msg, target=path.name)

    async def commits_behind(self, path: Path) -> int:
        return self.behind.get(path.name, 0)


class FakeEncryptor:
    """Encryptor that prefixes a marker instead of encrypting."""

    def __init__(self, available: bool = True, fail: bool = False) -> None:
        self.available = available
        self.fail = fail
        self.recipients: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def encrypt(self, src: Path, dest: Path, recipient: str) -> None:
        if self.fail:
            msg = "public key not found"
            raise EncryptionError(msg, target=src.name)
        self.recipients.append(recipient)
        dest.write_bytes(ENCRYPTED_MAGIC + src.read_bytes())

    async def decrypt(self, src: Path, dest: Path) -> None:
        data = src.read_bytes()
        if self.fail or not data.startswith(ENCRYPTED_MAGIC):
            msg = "decryption failed: No secret key"
            raise EncryptionError(msg, target=src.name)
        dest.write_bytes(data[len(ENCRYPTED_MAGIC) :])


class FakeObjectStore:
    """ObjectStore holding file names per destination."""

    def __init__(self, fail: bool = False) -> None:
        self.files: dict[str, list[str]] = {}
        self.fail = fail
        self.deleted: list[str] = []

    async def copy_in(self, src: Path, destination: str) -> None:
        if self.fail:
            msg = "didn't find section in config file"
            raise RemoteStorageError(msg, target=destination)
        self.files.setdefault(destination, []).append(src.name)

    async def list_names(self, destination: str) -> list[str]:
        if self.fail:
            msg = "directory not found"
            raise RemoteStorageError(msg, target=destination)
        return list(self.files.get(destination, []))

    async def delete(self, destination: str, name: str) -> None:
        self.files[destination].remove(name)
        self.deleted.append(name)


class FakeCoreTool:
    """CoreTool with scripted versions and failures."""

    def __init__(
        self,
        installed: bool = True,
        version: str = "2026.1.1",
        new_version: str | None = None,
        fail_update: bool = False,
        fail_message: bool = False,
        latest: str | None = None,
    ) -> None:
        self.installed = installed
        self.current = version
        self.new_version = new_version
        self.fail_update = fail_update
        self.fail_message = fail_message
        self.latest = latest
        self.update_calls = 0
        self.messages: list[str] = []

    def is_installed(self) -> bool:
        return self.installed

    async def version(self) -> str:
        return self.current

    async def update(self) -> None:
        self.update_calls += 1
        if self.fail_update:
            msg = "npm ERR! code EACCES"
            raise CoreToolError(msg, target="openclaw")
        if self.new_version:
            self.current = self.new_version

    async def send_message(self, message: str) -> None:
        if self.fail_message:
            msg = "gateway not running"
            raise CoreToolError(msg, target="openclaw")
        self.messages.append(message)

    async def latest_version(self) -> str | None:
        return self.latest


class FakeConnectivity:
    """ConnectivityChecker with a fixed answer."""

    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable

    async def is_reachable(self) -> bool:
        return self.reachable


class FakeReporter:
    """Reporter recording the runs it receives."""

    def __init__(self, report_dir: Path) -> None:
        self.report_dir = report_dir
        self.summarized: list[UpdateRun] = []
        self.written: list[UpdateRun] = []

    def summarize(self, run: UpdateRun) -> None:
        self.summarized.append(run)

    def write(self, run: UpdateRun) -> Path:
        self.written.append(run)
        return self.report_dir / "report.json"


@pytest.fixture
def vcs() -> FakeVersionControl:
    """Provide a fake version-control collaborator."""
    return FakeVersionControl()


@pytest.fixture
def encryptor() -> FakeEncryptor:
    """Provide a fake encryptor."""
    return FakeEncryptor()


@pytest.fixture
def store() -> FakeObjectStore:
    """Provide a fake remote object store."""
    return FakeObjectStore()
