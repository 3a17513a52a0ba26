"""Path rehoming for extracted backups.

Archives captured on one host embed that host's home directory in config
files, virtualenv scripts and caches. Before a restore, the most frequent
foreign home path in the extracted tree is rewritten to the current home.

Detection looks for three candidate forms:
    /root/            the superuser home
    /home/<name>/     a regular user home
    home/<name>/      the same without the leading separator

A pass over an already rehomed tree changes nothing: the current home
counts as a candidate and wins ties, so it is picked again.
"""

from __future__ import annotations

import os
import re
from collections import Counter
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import orjson

from update_plus.constants import BINARY_EXTENSIONS, VCS_METADATA_DIRS
from update_plus.domain.types import SanitizeReport
from update_plus.logger import get_logger

logger = get_logger(__name__)

# Absolute candidates carry their own leading "/" and may follow another
# one (file:///home/bob). The relative form must not sit inside an
# absolute path.
_ABSOLUTE_BOUNDARY = r"(?<![\w.\-])"
_RELATIVE_BOUNDARY = r"(?<![\w.\-/])"
_END = r"(?![\w.\-])"
_CANDIDATE_RE = re.compile(
    _ABSOLUTE_BOUNDARY
    + r"(?:/root/|/home/[\w.\-]+/)"
    + r"|"
    + _RELATIVE_BOUNDARY
    + r"home/[\w.\-]+/"
)


def _boundary(path: str) -> str:
    return _ABSOLUTE_BOUNDARY if path.startswith("/") else _RELATIVE_BOUNDARY


def _literal(path: str) -> re.Pattern[str]:
    return re.compile(_boundary(path) + re.escape(path) + _END)


def _is_binary_name(name: str) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(ext) for ext in BINARY_EXTENSIONS)


def _read_text(path: Path) -> str | None:
    """Return file content, or None for binary or unreadable files."""
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None
    if b"\0" in data:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _replace_strings(  # noqa: ANN401
    value: Any, pattern: re.Pattern[str], new: str
) -> Any:
    """Rewrite string values of a decoded JSON document recursively."""
    if isinstance(value, str):
        return pattern.sub(lambda _: new, value)
    if isinstance(value, list):
        return [_replace_strings(item, pattern, new) for item in value]
    if isinstance(value, dict):
        return {
            key: _replace_strings(item, pattern, new)
            for key, item in value.items()
        }
    return value


class PathSanitizer:
    """Detect and rewrite embedded home directory paths in a tree."""

    def __init__(self, home: Path) -> None:
        """Initialize the sanitizer.

        Args:
            home: Home directory of the current host

        """
        self.home = str(home).rstrip("/") or "/"

    @property
    def _home_candidate(self) -> str:
        return self.home.rstrip("/") + "/"

    @property
    def _home_relative_candidate(self) -> str:
        return self._home_candidate.lstrip("/")

    def iter_text_files(self, root: Path) -> Iterator[Path]:
        """Yield regular files worth scanning, skipping VCS metadata."""
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                name for name in dirnames if name not in VCS_METADATA_DIRS
            )
            for filename in sorted(filenames):
                if _is_binary_name(filename):
                    continue
                path = Path(dirpath) / filename
                if path.is_symlink() or not path.is_file():
                    continue
                yield path

    def count_candidates(self, root: Path) -> Counter[str]:
        """Count occurrences of each candidate home path in the tree."""
        counts: Counter[str] = Counter()
        home_pattern = re.compile(
            _ABSOLUTE_BOUNDARY + re.escape(self._home_candidate)
        )
        home_relative_pattern = re.compile(
            _RELATIVE_BOUNDARY + re.escape(self._home_relative_candidate)
        )
        home_hits = 0
        home_relative_hits = 0
        for path in self.iter_text_files(root):
            text = _read_text(path)
            if text is None:
                continue
            counts.update(_CANDIDATE_RE.findall(text))
            home_hits += len(home_pattern.findall(text))
            home_relative_hits += len(home_relative_pattern.findall(text))

        # The current home may not match any candidate form (e.g. /Users/x)
        if self.home == "/":
            return counts
        if home_hits:
            counts[self._home_candidate] = home_hits
        if home_relative_hits:
            counts[self._home_relative_candidate] = home_relative_hits
        return counts

    def detect(self, counts: Counter[str]) -> str | None:
        """Pick the original home candidate from candidate counts.

        Absolute candidates win over relative ones. Among equal counts the
        current home wins, then the reverse-lexicographically greatest
        candidate.

        A relative candidate such as "home/bob/" stands for /home/bob, but
        it is rewritten in its own relative form ("home/bob" becomes
        "home/alice"). It is only chosen when the tree holds no absolute
        candidate, so rewriting the absolute /home/bob would change
        nothing.

        Returns:
            The chosen candidate (with its trailing separator), or None

        """
        absolute = [c for c in counts if c.startswith("/")]
        pool = absolute or [c for c in counts if not c.startswith("/")]
        if not pool:
            return None

        def rank(candidate: str) -> tuple[int, bool, str]:
            is_home = "/" + candidate.lstrip("/") == self._home_candidate
            return counts[candidate], is_home, candidate

        return max(pool, key=rank)

    def _rewrite_file(
        self, path: Path, pattern: re.Pattern[str], new: str
    ) -> bool:
        text = _read_text(path)
        if text is None or not pattern.search(text):
            return False

        if path.suffix.lower() == ".json":
            try:
                document = orjson.loads(text)
            except orjson.JSONDecodeError:
                logger.debug("Invalid JSON in %s, using text replace", path)
            else:
                updated = _replace_strings(document, pattern, new)
                if updated == document:
                    return False
                path.write_bytes(
                    orjson.dumps(updated, option=orjson.OPT_INDENT_2) + b"\n"
                )
                return True

        path.write_bytes(pattern.sub(lambda _: new, text).encode("utf-8"))
        return True

    def count_remaining(self, root: Path, original: str) -> int:
        """Count occurrences of a home path still present in the tree.

        Any occurrence counts, whatever precedes it. Only a longer name
        (/home/bob in /home/bobby) is not a leftover.
        """
        pattern = re.compile(re.escape(original) + _END)
        total = 0
        for path in self.iter_text_files(root):
            text = _read_text(path)
            if text is not None:
                total += len(pattern.findall(text))
        return total

    def sanitize(self, root: Path) -> SanitizeReport:
        """Rehome embedded paths under root to the current home.

        Never raises for unreadable or unwritable files; they are logged
        and left as they are.

        Args:
            root: Extracted archive tree

        Returns:
            SanitizeReport describing what was rewritten

        """
        counts = self.count_candidates(root)
        candidate = self.detect(counts)
        if candidate is None:
            logger.debug("No embedded home paths found in %s", root)
            return SanitizeReport()

        relative = not candidate.startswith("/")
        original = candidate.rstrip("/")
        replacement = self.home.lstrip("/") if relative else self.home
        if original == replacement:
            logger.debug("Backup paths already use %s", self.home)
            return SanitizeReport(original_home=original)

        logger.info("🔧 Rehoming paths: %s → %s", original, replacement)
        pattern = _literal(original)
        files_changed = 0
        for path in self.iter_text_files(root):
            try:
                if self._rewrite_file(path, pattern, replacement):
                    files_changed += 1
            except OSError as e:
                logger.warning("Could not rewrite %s: %s", path, e)

        remaining = self.count_remaining(root, original)
        if remaining:
            logger.warning(
                "⚠️  %d occurrences of %s remain in restored files",
                remaining,
                original,
            )
        logger.info("Sanitized %d files", files_changed)
        return SanitizeReport(
            original_home=original,
            replacement=replacement,
            files_changed=files_changed,
            remaining=remaining,
        )
