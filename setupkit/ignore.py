from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnorePattern:
    glob: str
    directory_only: bool = False


@dataclass(frozen=True)
class IgnoreRule:
    """Glob patterns anchored to ``root``.

    Built once per copy and never mutated, so one rule can be shared by
    every level of a traversal without going stale.
    """

    root: Path
    patterns: tuple[IgnorePattern, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.patterns)


def parse_patterns(lines) -> tuple[IgnorePattern, ...]:
    patterns: list[IgnorePattern] = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        directory_only = stripped.endswith("/")
        glob = stripped.strip("/")
        if not glob:
            continue
        patterns.append(IgnorePattern(glob=glob, directory_only=directory_only))
    return tuple(patterns)


def compile_ignore(ignore_file: Path, root: Path | None = None) -> IgnoreRule:
    anchor = (root if root is not None else ignore_file.parent).resolve()
    if not ignore_file.is_file():
        logger.debug("No ignore file at %s, nothing excluded", ignore_file)
        return IgnoreRule(root=anchor)

    with ignore_file.open(encoding="utf-8") as handle:
        patterns = parse_patterns(handle)

    logger.debug("Compiled %d ignore patterns from %s", len(patterns), ignore_file)
    return IgnoreRule(root=anchor, patterns=patterns)


def _relative_parts(rule: IgnoreRule, candidate: Path) -> tuple[str, ...] | None:
    try:
        relative = candidate.resolve().relative_to(rule.root)
    except ValueError:
        return None
    return PurePosixPath(relative.as_posix()).parts


def is_excluded(rule: IgnoreRule, candidate: Path) -> bool:
    parts = _relative_parts(rule, candidate)
    if not parts:
        return False

    is_dir = candidate.is_dir()
    prefixes = ["/".join(parts[: index + 1]) for index in range(len(parts))]

    for pattern in rule.patterns:
        for depth, prefix in enumerate(prefixes, start=1):
            if pattern.directory_only and depth == len(prefixes) and not is_dir:
                continue
            if fnmatch.fnmatchcase(prefix, pattern.glob):
                logger.debug("Excluded %s (pattern %r)", prefix, pattern.glob)
                return True
    return False
