from __future__ import annotations


class SetupkitError(RuntimeError):
    pass


class MissingInitialization(SetupkitError):
    def __init__(self, path: object, missing: str):
        super().__init__(f"Missing {missing} in {path}, please run `setupkit init` first.")
        self.path = path
        self.missing = missing


class SnapshotNotFound(SetupkitError):
    def __init__(self, snapshot_id: str):
        super().__init__(f"Snapshot does not exist: {snapshot_id}")
        self.snapshot_id = snapshot_id


class SnapshotExists(SetupkitError):
    def __init__(self, snapshot_id: str):
        super().__init__(f"Snapshot already exists: {snapshot_id}")
        self.snapshot_id = snapshot_id


class ManifestParseError(SetupkitError):
    pass


class SnapshotIOError(SetupkitError):
    pass


class ProjectExistsError(SetupkitError):
    def __init__(self, conflicting_files: tuple[str, ...]):
        super().__init__(f"Files already exist: {', '.join(conflicting_files)}")
        self.conflicting_files = conflicting_files


class InvalidSnapshotId(SetupkitError):
    def __init__(self, snapshot_id: str):
        super().__init__(f"Invalid snapshot name: {snapshot_id!r}")
        self.snapshot_id = snapshot_id
