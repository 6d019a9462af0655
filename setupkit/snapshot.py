from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import IGNORE_FILE, MANIFEST_FILE
from .copier import copy_tree, substitute
from .errors import (
    InvalidSnapshotId,
    MissingInitialization,
    ProjectExistsError,
    SnapshotExists,
    SnapshotIOError,
)
from .ignore import compile_ignore
from .manifest import read_manifest, render_ignore_file, render_manifest
from .registry import is_valid_snapshot_id, list_snapshots, locate_snapshot, resolve_identity
from .variables import Asker, resolve_variables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateReport:
    snapshot_id: str
    path: Path


@dataclass(frozen=True)
class CloneReport:
    snapshot_id: str
    source: Path
    destination: Path
    answers: dict


@dataclass(frozen=True)
class InitReport:
    directory: Path
    project_name: str
    written: tuple[str, ...]


def _copy(source: Path, destination: Path, **kwargs) -> Path:
    try:
        return copy_tree(source, destination, **kwargs)
    except (OSError, UnicodeDecodeError) as error:
        raise SnapshotIOError(str(error)) from error


def create_snapshot(source: Path, registry_root: Path, name: str | None = None) -> CreateReport:
    """Capture ``source`` into the registry.

    The source must have been initialized: both the manifest and the ignore
    file are required, and nothing is written when either is missing.
    """
    root = source.resolve()
    for required in (MANIFEST_FILE, IGNORE_FILE):
        if not (root / required).is_file():
            raise MissingInitialization(root, required)

    manifest = read_manifest(root / MANIFEST_FILE)
    snapshot_id = resolve_identity(name, manifest)
    if not is_valid_snapshot_id(snapshot_id):
        raise InvalidSnapshotId(snapshot_id)

    target = registry_root / snapshot_id
    if target.exists():
        raise SnapshotExists(snapshot_id)

    ignore = compile_ignore(root / IGNORE_FILE, root)
    _copy(root, target, ignore=ignore)
    logger.info("Created snapshot %s at %s", snapshot_id, target)
    return CreateReport(snapshot_id=snapshot_id, path=target)


def clone_snapshot(
    registry_root: Path,
    snapshot_id: str,
    destination: Path,
    ask: Asker,
) -> CloneReport:
    located = locate_snapshot(registry_root, snapshot_id)
    manifest = read_manifest(located / MANIFEST_FILE)
    answers = resolve_variables(manifest.variables, ask)

    ignore = compile_ignore(located / IGNORE_FILE, located)
    target = _copy(located, destination, ignore=ignore, mutate=substitute(answers))
    logger.info("Cloned snapshot %s into %s", snapshot_id, target)
    return CloneReport(
        snapshot_id=snapshot_id,
        source=located,
        destination=target.resolve(),
        answers=answers,
    )


def show_snapshots(registry_root: Path) -> list[str]:
    try:
        return list_snapshots(registry_root)
    except OSError as error:
        raise SnapshotIOError(str(error)) from error


def init_project(directory: Path, project_name: str, force: bool = False) -> InitReport:
    root = directory.resolve()
    files = {
        IGNORE_FILE: render_ignore_file(),
        MANIFEST_FILE: render_manifest(project_name),
    }

    conflicting = tuple(name for name in files if (root / name).exists())
    if conflicting and not force:
        raise ProjectExistsError(conflicting)

    try:
        root.mkdir(parents=True, exist_ok=True)
        for name, content in files.items():
            (root / name).write_text(content, encoding="utf-8")
    except OSError as error:
        raise SnapshotIOError(str(error)) from error

    logger.info("Initialized %s as %s", root, project_name)
    return InitReport(directory=root, project_name=project_name, written=tuple(files))
