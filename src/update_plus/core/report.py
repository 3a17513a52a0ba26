"""Update run summaries and JSON reports."""

from __future__ import annotations

from pathlib import Path

import orjson

from update_plus.constants import BACKUP_TIMESTAMP_FORMAT, REPORT_PREFIX
from update_plus.domain.types import ModuleStatus, UpdateRun
from update_plus.logger import get_logger

logger = get_logger(__name__)


def format_summary(run: UpdateRun) -> list[str]:
    """Render a finished run as human readable lines."""
    lines = [f"Status: {run.status.value}"]
    if run.dry_run:
        lines.append("Mode: dry-run, nothing was changed")
    if run.error:
        lines.append(f"Error: {run.error}")

    backup = run.backup
    if backup.filename:
        lines.append(f"Backup: {backup.filename}")
    else:
        lines.append(f"Backup: {backup.status.value}")

    core = run.core_update
    versions = ""
    if core.from_version or core.to_version:
        before = core.from_version or "?"
        after = core.to_version or "?"
        versions = f" ({before} → {after})"
    lines.append(f"OpenClaw: {core.status.value}{versions}")
    if core.rolled_back:
        lines.append("OpenClaw: rolled back from backup")

    updated = [m for m in run.modules if m.status is ModuleStatus.UPDATED]
    unchanged = [m for m in run.modules if m.status is ModuleStatus.NO_CHANGE]
    skipped = [m for m in run.modules if m.status is ModuleStatus.SKIPPED]
    lines.append(
        f"Skills: {len(updated)} updated, {len(unchanged)} unchanged, "
        f"{len(skipped)} skipped, {len(run.failed_modules)} failed"
    )
    for failed in run.failed_modules:
        lines.append(f"  ✗ {failed.name}: {failed.reason}")
    return lines


class JsonReportWriter:
    """Log run summaries and write JSON reports to the backup directory."""

    def __init__(self, report_dir: Path) -> None:
        """Initialize the writer.

        Args:
            report_dir: Directory receiving report-<timestamp>.json files

        """
        self.report_dir = report_dir

    def summarize(self, run: UpdateRun) -> None:
        """Log the run summary, as warnings when the run failed."""
        log = logger.info if run.succeeded else logger.warning
        log("Update summary:")
        for line in format_summary(run):
            log("  %s", line)

    def report_path(self, run: UpdateRun) -> Path:
        """Path of the JSON report for a run."""
        stamp = run.timestamp.strftime(BACKUP_TIMESTAMP_FORMAT)
        return self.report_dir / f"{REPORT_PREFIX}-{stamp}.json"

    def write(self, run: UpdateRun) -> Path:
        """Write the structured report.

        Returns:
            Path of the written report

        Raises:
            OSError: If the report cannot be written

        """
        path = self.report_path(run)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            orjson.dumps(run.to_dict(), option=orjson.OPT_INDENT_2) + b"\n"
        )
        logger.info("📄 Report written to %s", path)
        return path
