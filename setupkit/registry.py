from __future__ import annotations

import uuid
from pathlib import Path, PurePath
from typing import Callable

from .errors import SnapshotNotFound
from .manifest import Manifest


def _generate_id() -> str:
    return str(uuid.uuid4())


def resolve_identity(
    explicit_name: str | None,
    manifest: Manifest,
    id_factory: Callable[[], str] = _generate_id,
) -> str:
    for candidate in (explicit_name, manifest.project_name):
        if candidate is not None and candidate.strip():
            return candidate.strip()
    return id_factory()


def list_snapshots(registry_root: Path) -> list[str]:
    if not registry_root.is_dir():
        return []
    return sorted(entry.name for entry in registry_root.iterdir() if entry.is_dir())


def is_valid_snapshot_id(snapshot_id: str) -> bool:
    parts = PurePath(snapshot_id).parts
    return len(parts) == 1 and parts[0] not in (".", "..") and not PurePath(snapshot_id).is_absolute()


def locate_snapshot(registry_root: Path, snapshot_id: str) -> Path:
    if not snapshot_id or not is_valid_snapshot_id(snapshot_id):
        raise SnapshotNotFound(snapshot_id)

    path = registry_root / snapshot_id
    if not path.is_dir():
        raise SnapshotNotFound(snapshot_id)
    return path
