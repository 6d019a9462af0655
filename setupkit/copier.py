from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Mapping

from .ignore import IgnoreRule, is_excluded

logger = logging.getLogger(__name__)

Mutator = Callable[[str], str]


def render_placeholders(text: str, answers: Mapping[str, str]) -> str:
    for name, value in answers.items():
        text = text.replace("{{" + name + "}}", value)
    return text


def substitute(answers: Mapping[str, str]) -> Mutator | None:
    """Build the content mutator for a clone, or None when there is nothing to replace."""
    if not answers:
        return None
    frozen = dict(answers)

    def mutate(text: str) -> str:
        return render_placeholders(text, frozen)

    return mutate


def _copy_file(source: Path, destination: Path, mutate: Mutator | None) -> None:
    if mutate is None:
        shutil.copyfile(source, destination)
        return

    # Binary content is not detected; non UTF-8 files fail here instead of being rewritten.
    # Bytes are decoded directly so line endings survive untouched.
    content = source.read_bytes().decode("utf-8")
    destination.write_bytes(mutate(content).encode("utf-8"))


def copy_tree(
    source: Path,
    destination: Path,
    ignore: IgnoreRule | None = None,
    mutate: Mutator | None = None,
) -> Path:
    """Mirror ``source`` into ``destination`` depth first.

    Excluded entries are skipped without descending, and so is the
    destination itself when it lives inside ``source``. Errors abort the
    walk and leave whatever was already written in place.
    """
    destination.mkdir(parents=True, exist_ok=True)
    _copy_entries(source, destination, ignore, mutate, destination.resolve())
    return destination


def _copy_entries(
    source: Path,
    destination: Path,
    ignore: IgnoreRule | None,
    mutate: Mutator | None,
    root_destination: Path,
) -> None:
    for entry in sorted(source.iterdir(), key=lambda path: path.name):
        if ignore is not None and is_excluded(ignore, entry):
            continue

        target = destination / entry.name
        if entry.is_dir():
            if entry.resolve() == root_destination:
                logger.debug("Skipping %s, it is the copy destination", entry)
                continue
            target.mkdir(exist_ok=True)
            _copy_entries(entry, target, ignore, mutate, root_destination)
        else:
            logger.debug("Copying %s -> %s", entry, target)
            _copy_file(entry, target, mutate)
