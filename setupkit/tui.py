from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable

import click
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import SetupkitError
from .variables import Asker

KEY_UP = "up"
KEY_DOWN = "down"
KEY_ENTER = "enter"
KEY_BACKSPACE = "backspace"
KEY_ESCAPE = "escape"

_ESCAPE_SEQUENCES = {
    "\x1b[A": KEY_UP,
    "\x1bOA": KEY_UP,
    "\x1b[B": KEY_DOWN,
    "\x1bOB": KEY_DOWN,
    "\r": KEY_ENTER,
    "\n": KEY_ENTER,
    "\x7f": KEY_BACKSPACE,
    "\x08": KEY_BACKSPACE,
    "\x1b": KEY_ESCAPE,
}


class Mode(str, Enum):
    main = "main"
    confirming = "confirming"
    error = "error"
    exiting = "exiting"


@dataclass(frozen=True)
class BrowserState:
    snapshots: tuple[str, ...]
    cursor: int = 0
    mode: Mode = Mode.main
    destination: str = ""
    message: str = ""
    clone_requested: bool = False

    @property
    def selected(self) -> str | None:
        if not self.snapshots:
            return None
        return self.snapshots[self.cursor]


def normalize_key(raw: str) -> str:
    return _ESCAPE_SEQUENCES.get(raw, raw)


def _shared_transition(state: BrowserState, key: str) -> BrowserState | None:
    if key == KEY_ESCAPE:
        if state.mode == Mode.main:
            return replace(state, mode=Mode.exiting)
        return replace(state, mode=Mode.main, destination="", message="")
    if key == "q" and state.mode != Mode.confirming:
        return replace(state, mode=Mode.exiting)
    return None


def _main_transition(state: BrowserState, key: str) -> BrowserState:
    count = len(state.snapshots)
    if key in (KEY_DOWN, "j") and count:
        return replace(state, cursor=(state.cursor + 1) % count)
    if key in (KEY_UP, "k") and count:
        return replace(state, cursor=(state.cursor - 1) % count)
    if key == KEY_ENTER and count:
        return replace(state, mode=Mode.confirming, destination="", message="")
    return state


def _confirming_transition(state: BrowserState, key: str) -> BrowserState:
    if key == KEY_ENTER:
        if not state.destination.strip():
            return replace(state, message="Destination is required.")
        return replace(state, clone_requested=True)
    if key == KEY_BACKSPACE:
        return replace(state, destination=state.destination[:-1])
    if len(key) == 1 and key.isprintable():
        return replace(state, destination=state.destination + key)
    return state


def _error_transition(state: BrowserState, key: str) -> BrowserState:
    return replace(state, mode=Mode.main, message="")


_MODE_TRANSITIONS: dict[Mode, Callable[[BrowserState, str], BrowserState]] = {
    Mode.main: _main_transition,
    Mode.confirming: _confirming_transition,
    Mode.error: _error_transition,
    Mode.exiting: lambda state, key: state,
}


def transition(state: BrowserState, key: str) -> BrowserState:
    """Apply one key press; the shared quit/back rule runs before mode rules."""
    shared = _shared_transition(state, key)
    if shared is not None:
        return shared
    return _MODE_TRANSITIONS[state.mode](state, key)


def complete_clone(state: BrowserState, error: Exception | None) -> BrowserState:
    if error is None:
        return replace(state, mode=Mode.exiting, clone_requested=False, message=f"Cloned into {state.destination}")
    return replace(state, mode=Mode.error, clone_requested=False, message=str(error))


def render(state: BrowserState) -> Group:
    table = Table(title="Snapshots", expand=True)
    table.add_column("")
    table.add_column("Id")
    if not state.snapshots:
        table.add_row("", "[dim]No snapshots yet.[/dim]")
    for index, snapshot_id in enumerate(state.snapshots):
        marker = ">>" if index == state.cursor else ""
        style = "bold cyan" if index == state.cursor else ""
        table.add_row(marker, Text(snapshot_id, style=style))

    if state.mode == Mode.confirming:
        body = f"Clone [bold]{escape(state.selected or '')}[/bold] into: {escape(state.destination)}_"
        if state.message:
            body += f"\n[red]{escape(state.message)}[/red]"
        footer = Panel(body, title="<Enter> confirm  <Esc> cancel")
    elif state.mode == Mode.error:
        footer = Panel(f"[red]{escape(state.message)}[/red]", title="Error (any key to continue)")
    else:
        footer = Panel("<Up>/<Down> move  <Enter> clone  <Q> quit", title="Keys")
    return Group(table, footer)


def run_browser(
    snapshots: list[str],
    clone: Callable[[str, Path, Asker], object],
    console: Console | None = None,
    read_key: Callable[[], str] = click.getchar,
) -> BrowserState:
    console = console or Console()
    state = BrowserState(snapshots=tuple(snapshots))

    while state.mode != Mode.exiting:
        console.clear()
        console.print(render(state))
        state = transition(state, normalize_key(read_key()))

        if state.clone_requested:
            console.clear()
            try:
                clone(state.selected, Path(state.destination).expanduser(), lambda prompt: console.input(escape(prompt)))
            except SetupkitError as error:
                state = complete_clone(state, error)
            else:
                state = complete_clone(state, None)

    if state.message:
        console.print(state.message)
    return state
