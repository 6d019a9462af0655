from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import DEFAULT_IGNORE_ENTRIES, templates_root
from .errors import ManifestParseError


@dataclass(frozen=True)
class Variable:
    name: str
    default: str | None = None


@dataclass(frozen=True)
class Manifest:
    project_name: str | None = None
    variables: tuple[Variable, ...] = ()


def _scalar(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ManifestParseError(f"Expected a scalar value, got {type(value).__name__}")
    return str(value)


def _parse_variable(index: int, entry: object, path: Path) -> Variable:
    if not isinstance(entry, dict):
        raise ManifestParseError(f"{path}: variables[{index}] must be a mapping")

    try:
        name = _scalar(entry.get("name"))
        default = _scalar(entry.get("default"))
    except ManifestParseError as error:
        raise ManifestParseError(f"{path}: variables[{index}]: {error}") from error

    if name is None or not name.strip():
        raise ManifestParseError(f"{path}: variables[{index}] is missing `name`")
    return Variable(name=name.strip(), default=default)


def parse_manifest(text: str, path: Path) -> Manifest:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise ManifestParseError(f"{path}: {error}") from error

    if data is None:
        return Manifest()
    if not isinstance(data, dict):
        raise ManifestParseError(f"{path}: expected a mapping at the top level")

    project = data.get("project") or {}
    if not isinstance(project, dict):
        raise ManifestParseError(f"{path}: `project` must be a mapping")
    try:
        project_name = _scalar(project.get("name"))
    except ManifestParseError as error:
        raise ManifestParseError(f"{path}: project.name: {error}") from error

    raw_variables = data.get("variables") or []
    if not isinstance(raw_variables, list):
        raise ManifestParseError(f"{path}: `variables` must be a list")

    variables = tuple(_parse_variable(index, entry, path) for index, entry in enumerate(raw_variables))
    return Manifest(project_name=project_name, variables=variables)


def read_manifest(path: Path) -> Manifest:
    """Read a snapshot manifest; a missing file is an empty manifest."""
    if not path.is_file():
        return Manifest()
    return parse_manifest(path.read_text(encoding="utf-8"), path)


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_root())),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_manifest(project_name: str) -> str:
    return _environment().get_template("setupkit.yml.j2").render(project_name=project_name)


def render_ignore_file(entries: tuple[str, ...] = DEFAULT_IGNORE_ENTRIES) -> str:
    return _environment().get_template("setupkitignore.j2").render(entries=list(entries))
