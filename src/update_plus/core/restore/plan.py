"""Format detection and restore plan construction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from update_plus.domain.types import ArchiveFormat, PlanEntry, RestorePlan


def list_labels(root: Path) -> list[str]:
    """Return the top-level directory names of an extracted archive."""
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and not entry.is_symlink()
    )


def detect_format(root: Path) -> ArchiveFormat:
    """Detect the storage format of an extracted archive.

    A root with at least one subdirectory is labeled (each subdirectory is
    a label); a root holding only files is the legacy flat format.
    """
    return ArchiveFormat.LABELED if list_labels(root) else ArchiveFormat.LEGACY


def build_restore_plan(
    labels: Iterable[str],
    targets: Mapping[str, Path],
    label_filter: str | None = None,
) -> RestorePlan:
    """Map archive labels to restore targets.

    Args:
        labels: Labels found in the archive, in restore order
        targets: Configured label -> target associations over the defaults
        label_filter: Restore only this label when given

    Returns:
        RestorePlan with one entry per label; labels without a mapping get
        target None

    """
    entries = tuple(
        PlanEntry(
            label=label,
            target=targets.get(label),
            selected=label_filter is None or label == label_filter,
        )
        for label in labels
    )
    return RestorePlan(entries=entries, label_filter=label_filter)


def describe_plan(plan: RestorePlan) -> list[str]:
    """Render plan entries as display lines.

    Example:
        ["→ skills → /home/alice/.openclaw/skills",
         "○ dev → /home/alice/.openclaw/skills-dev (skipped)"]

    """
    lines = []
    for entry in plan.entries:
        target = str(entry.target) if entry.target is not None else "unknown"
        if entry.selected:
            lines.append(f"→ {entry.label} → {target}")
        else:
            lines.append(f"○ {entry.label} → {target} (skipped)")
    return lines
