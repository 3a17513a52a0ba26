"""Compare the contents of two backup archives."""

from __future__ import annotations

import asyncio
import difflib
import filecmp
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from update_plus.constants import DIFF_SCRATCH_PREFIX, ENCRYPTED_SUFFIX
from update_plus.core.restore.engine import extract_archive
from update_plus.exceptions import ToolUnavailableError
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.core.backup.catalog import BackupCatalog
    from update_plus.core.protocols import Encryptor
    from update_plus.domain.types import BackupArchive

logger = get_logger(__name__)


def _read_lines(path: Path) -> list[str] | None:
    data = path.read_bytes()
    if b"\0" in data:
        return None
    try:
        return data.decode("utf-8").splitlines(keepends=True)
    except UnicodeDecodeError:
        return None


def _diff_file(left: Path, right: Path, name: str) -> list[str]:
    left_lines = _read_lines(left)
    right_lines = _read_lines(right)
    if left_lines is None or right_lines is None:
        return [f"Binary files a/{name} and b/{name} differ\n"]
    return list(
        difflib.unified_diff(
            left_lines, right_lines, fromfile=f"a/{name}", tofile=f"b/{name}"
        )
    )


def diff_trees(left: Path, right: Path, prefix: str = "") -> list[str]:
    """Recursively diff two directory trees.

    Args:
        left: First tree (shown as a/)
        right: Second tree (shown as b/)
        prefix: Relative path of left/right inside the compared roots

    Returns:
        "Only in" lines and unified diff lines, in sorted path order

    """
    comparison = filecmp.dircmp(left, right, ignore=[])
    lines: list[str] = []
    where = prefix.rstrip("/") or "."

    for name in sorted(comparison.left_only):
        lines.append(f"Only in a/{where}: {name}\n")
    for name in sorted(comparison.right_only):
        lines.append(f"Only in b/{where}: {name}\n")

    for name in sorted(comparison.common_files):
        if not filecmp.cmp(left / name, right / name, shallow=False):
            lines.extend(_diff_file(left / name, right / name, prefix + name))

    for name in sorted(comparison.common_dirs):
        lines.extend(
            diff_trees(left / name, right / name, f"{prefix}{name}/")
        )
    return lines


async def _unpack(
    archive: BackupArchive, scratch: Path, encryptor: Encryptor | None
) -> Path:
    tarball = archive.path
    if archive.encrypted:
        if encryptor is None or not encryptor.is_available():
            msg = "gpg is required to compare encrypted backups"
            raise ToolUnavailableError(msg, target="gpg")
        tarball = scratch / archive.name.removesuffix(ENCRYPTED_SUFFIX)
        await encryptor.decrypt(archive.path, tarball)

    tree = scratch / "tree"
    tree.mkdir()
    await asyncio.to_thread(extract_archive, tarball, tree)
    return tree


async def diff_archives(
    catalog: BackupCatalog,
    first_id: str,
    second_id: str,
    encryptor: Encryptor | None = None,
) -> list[str]:
    """Diff the contents of two archives.

    Both archives are extracted into private scratch directories that are
    removed before returning.

    Args:
        catalog: Catalog used to locate the archives
        first_id: Name or identifier of the older archive
        second_id: Name or identifier of the newer archive
        encryptor: Decrypts .gpg archives

    Returns:
        Diff lines; empty when the archives hold identical trees

    Raises:
        NotFoundError: If either archive does not exist
        ArchiveFormatError: If either archive cannot be extracted

    """
    first = catalog.find(first_id)
    second = catalog.find(second_id)
    logger.info("Comparing %s with %s", first.name, second.name)

    with tempfile.TemporaryDirectory(prefix=DIFF_SCRATCH_PREFIX) as scratch:
        scratch_dir = Path(scratch)
        (scratch_dir / "a").mkdir()
        (scratch_dir / "b").mkdir()
        left = await _unpack(first, scratch_dir / "a", encryptor)
        right = await _unpack(second, scratch_dir / "b", encryptor)
        return await asyncio.to_thread(diff_trees, left, right)
