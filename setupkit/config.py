from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

MANIFEST_FILE = "setupkit.yml"
IGNORE_FILE = ".setupkitignore"
DEFAULT_IGNORE_ENTRIES = (".git/", "snapshots/")

DEBUG_MODES = ("debug", "info", "warning", "error", "critical")
SETTINGS_KEYS = ("config_file_path", "snapshots_path", "debug_mode")


def templates_root() -> Path:
    return Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class EnvironmentProvider:
    """Host values the default settings are derived from."""

    home: Path
    cwd: Path

    @classmethod
    def from_os(cls) -> "EnvironmentProvider":
        home = os.environ.get("HOME")
        return cls(
            home=Path(home) if home else Path.home(),
            cwd=Path.cwd(),
        )


@dataclass(frozen=True)
class Settings:
    config_file_path: Path
    snapshots_path: Path
    debug_mode: str = "error"

    @classmethod
    def defaults(cls, environment: EnvironmentProvider) -> "Settings":
        base = environment.home / ".config" / "setupkit"
        return cls(
            config_file_path=base / "config.yml",
            snapshots_path=base / "snapshots",
        )

    def as_dict(self) -> dict:
        return {
            "config_file_path": str(self.config_file_path),
            "snapshots_path": str(self.snapshots_path),
            "debug_mode": self.debug_mode,
        }

    def as_rows(self) -> list[tuple[str, str]]:
        return [(key, value) for key, value in self.as_dict().items()]


def _expand(value: object, environment: EnvironmentProvider) -> Path:
    raw = str(value).strip()
    if raw == "~" or raw.startswith("~/"):
        return environment.home / raw[2:]
    path = Path(raw)
    if not path.is_absolute():
        path = environment.cwd / path
    return path


def load_settings(
    config_path: Path | None = None,
    environment: EnvironmentProvider | None = None,
) -> Settings:
    environment = environment or EnvironmentProvider.from_os()
    settings = Settings.defaults(environment)
    if config_path is not None:
        settings = replace(settings, config_file_path=_expand(config_path, environment))

    path = settings.config_file_path
    if not path.is_file():
        logger.debug("No config file at %s, using defaults", path)
        return settings

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as error:
        logger.warning("Ignoring unreadable config file %s: %s", path, error)
        return settings

    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a mapping", path)
        return settings

    overrides: dict = {}
    if data.get("snapshots_path"):
        overrides["snapshots_path"] = _expand(data["snapshots_path"], environment)
    debug_mode = str(data.get("debug_mode", "")).strip().lower()
    if debug_mode in DEBUG_MODES:
        overrides["debug_mode"] = debug_mode
    elif debug_mode:
        logger.warning("Unknown debug_mode %r in %s", debug_mode, path)

    return replace(settings, **overrides)


def ensure_config_file(settings: Settings) -> Path | None:
    path = settings.config_file_path
    if path.exists():
        return None

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(settings.as_dict(), sort_keys=False), encoding="utf-8")
    logger.info("Created config file %s", path)
    return path
