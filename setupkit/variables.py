from __future__ import annotations

import logging
from typing import Callable, Iterable, TextIO

from .manifest import Variable

logger = logging.getLogger(__name__)

Asker = Callable[[str], str]


def build_prompt(variable: Variable) -> str:
    if variable.default is not None:
        return f"Enter value for {variable.name} [default: {variable.default}]: "
    return f"Enter value for {variable.name}: "


def resolve_variables(variables: Iterable[Variable], ask: Asker) -> dict[str, str]:
    """Ask for every variable in order and return the final answers.

    A blank answer falls back to the variable's default when it has one;
    otherwise the trimmed answer is kept as given, empty string included.
    Later duplicates of a name overwrite earlier answers.
    """
    answers: dict[str, str] = {}
    for variable in variables:
        answer = ask(build_prompt(variable)).strip()
        if not answer and variable.default is not None:
            answer = variable.default
        if variable.name in answers:
            logger.debug("Variable %s declared more than once, keeping the last answer", variable.name)
        answers[variable.name] = answer
    return answers


def stream_asker(input_stream: TextIO, output_stream: TextIO) -> Asker:
    def ask(prompt: str) -> str:
        output_stream.write(prompt)
        output_stream.flush()
        line = input_stream.readline()
        return line.rstrip("\r\n")

    return ask


class ScriptedAsker:
    """Non-interactive asker that replays canned answers in order."""

    def __init__(self, answers: Iterable[str] = ()):
        self._answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            return ""
        return self._answers.pop(0)


def scripted_asker(answers: Iterable[str] = ()) -> ScriptedAsker:
    return ScriptedAsker(answers)
