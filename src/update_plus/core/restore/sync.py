"""Directory synchronization used by restores.

mirror_tree makes the destination an exact copy of the source, deleting
entries the source lacks. merge_tree only adds and overwrites. Below the
destination directory, neither writes through a symlink.
"""

from __future__ import annotations

import errno
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from update_plus.logger import get_logger

logger = get_logger(__name__)


def _remove(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def _is_protected(path: Path, protected: tuple[Path, ...]) -> bool:
    """Whether path is, or contains, a protected location."""
    return any(
        path == p or path in p.parents or p in path.parents for p in protected
    )


def _copy_entry(source: Path, destination: Path) -> None:
    if source.is_symlink():
        destination.symlink_to(os.readlink(source))
    else:
        shutil.copy2(source, destination)


def mirror_tree(
    source: Path,
    destination: Path,
    protected: Iterable[Path] = (),
) -> None:
    """Make destination an exact copy of source.

    Destination entries absent from source are deleted, except protected
    paths and the directories containing them. Symlinks are copied as
    links.

    Args:
        source: Directory to copy from
        destination: Directory to replace
        protected: Paths under destination that must never be deleted

    Raises:
        OSError: If any file operation fails

    """
    protected = tuple(Path(p) for p in protected)
    # A symlinked destination directory is followed, a dangling one replaced
    if destination.is_symlink() and not destination.exists():
        destination.unlink()
    elif destination.exists() and not destination.is_dir():
        destination.unlink()
    destination.mkdir(parents=True, exist_ok=True)

    source_names = {entry.name for entry in source.iterdir()}
    for entry in destination.iterdir():
        if entry.name in source_names or _is_protected(entry, protected):
            continue
        logger.debug("Removing %s", entry)
        _remove(entry)

    for entry in sorted(source.iterdir()):
        target = destination / entry.name
        if entry.is_dir() and not entry.is_symlink():
            if target.is_symlink():
                target.unlink()
            mirror_tree(entry, target, protected)
            continue
        if target.is_symlink() or target.exists():
            _remove(target)
        _copy_entry(entry, target)

    shutil.copystat(source, destination)


def merge_tree(source: Path, destination: Path) -> None:
    """Copy source into destination without deleting anything.

    Existing files with the same name are overwritten. A destination
    symlink in the way of a source entry is replaced, never written
    through, so a merge cannot modify files outside destination.

    Raises:
        OSError: If any file operation fails

    """
    destination.mkdir(parents=True, exist_ok=True)

    for entry in sorted(source.iterdir()):
        target = destination / entry.name
        if entry.is_dir() and not entry.is_symlink():
            if target.is_symlink() or (
                target.exists() and not target.is_dir()
            ):
                _remove(target)
            merge_tree(entry, target)
            continue
        if target.is_dir() and not target.is_symlink():
            msg = "cannot replace a directory with a file"
            raise IsADirectoryError(errno.EISDIR, msg, str(target))
        if target.is_symlink() or target.exists():
            target.unlink()
        _copy_entry(entry, target)

    shutil.copystat(source, destination)
