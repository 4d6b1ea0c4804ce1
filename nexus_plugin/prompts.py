"""Input sources for the interactive and scripted (CI) modes.

Commands pick one source at startup with :func:`select_input_source` and ask
it for every value they need. Neither the scaffolder nor the publisher
branches on interactivity themselves.
"""

from __future__ import annotations

import sys
from typing import Any, Mapping, Optional, Sequence, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

_TRUE_WORDS = frozenset({"true", "1", "yes", "y"})


def is_interactive() -> bool:
    """True if stdin is a TTY (interactive terminal)."""
    return sys.stdin.isatty()


def parse_csv(value: Any) -> list[str]:
    """Split ``'a, b,,c'`` into ``['a', 'b', 'c']``; ``'none'`` means empty."""
    if value is None or value == "none":
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def to_bool(value: Any, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_WORDS


class InputSource:
    """Answers questions by key. Subclasses decide where answers come from."""

    interactive: bool = False

    def text(self, key: str, question: str, default: Optional[str] = None) -> str:
        raise NotImplementedError

    def choose_many(self, key: str, question: str, options: Sequence[str]) -> list[str]:
        raise NotImplementedError

    def confirm(self, key: str, question: str, default: bool = False) -> bool:
        raise NotImplementedError

    def provided(self, key: str) -> Optional[Any]:
        """Value supplied up-front (command-line flag) for ``key``, if any."""
        return None

    def note(self, message: str) -> None:
        """Informational line shown between questions."""


class ScriptedInput(InputSource):
    """Answers from flags; falls back to defaults and never blocks."""

    interactive = False

    def __init__(self, answers: Optional[Mapping[str, Any]] = None):
        self._answers = {k: v for k, v in (answers or {}).items() if v is not None}

    def provided(self, key: str) -> Optional[Any]:
        return self._answers.get(key)

    def text(self, key: str, question: str, default: Optional[str] = None) -> str:
        value = self._answers.get(key)
        if value is None:
            return "" if default is None else str(default)
        return str(value)

    def choose_many(self, key: str, question: str, options: Sequence[str]) -> list[str]:
        return parse_csv(self._answers.get(key))

    def confirm(self, key: str, question: str, default: bool = False) -> bool:
        return to_bool(self._answers.get(key), default)


class InteractiveInput(InputSource):
    """Prompts on the terminal. Flags given up-front skip their prompt."""

    interactive = True

    def __init__(
        self,
        answers: Optional[Mapping[str, Any]] = None,
        console: Optional[Console] = None,
        stream: Optional[TextIO] = None,
    ):
        self._answers = {k: v for k, v in (answers or {}).items() if v is not None}
        self._console = console or Console()
        self._stream = stream

    def provided(self, key: str) -> Optional[Any]:
        return self._answers.get(key)

    def note(self, message: str) -> None:
        self._console.print(f"\n  [dim]{escape(message)}[/dim]")

    def text(self, key: str, question: str, default: Optional[str] = None) -> str:
        if key in self._answers:
            return str(self._answers[key])
        answer = Prompt.ask(
            f"  {question}",
            default="" if default is None else str(default),
            show_default=default is not None,
            console=self._console,
            stream=self._stream,
        )
        return answer.strip() or ("" if default is None else str(default))

    def choose_many(self, key: str, question: str, options: Sequence[str]) -> list[str]:
        if key in self._answers:
            return parse_csv(self._answers[key])

        self._console.print(f"\n  {question}")
        for index, option in enumerate(options, start=1):
            self._console.print(f"    [dim]{index})[/dim] {option}")
        self._console.print("    [dim]0)[/dim] None")
        answer = Prompt.ask(
            "  Select (comma-separated numbers)",
            default="",
            show_default=False,
            console=self._console,
            stream=self._stream,
        )

        selected: list[str] = []
        for part in parse_csv(answer):
            try:
                index = int(part) - 1
            except ValueError:
                continue
            if 0 <= index < len(options) and options[index] not in selected:
                selected.append(options[index])
        return selected

    def confirm(self, key: str, question: str, default: bool = False) -> bool:
        if key in self._answers:
            return to_bool(self._answers[key], default)
        return Confirm.ask(
            f"  {question}", default=default, console=self._console, stream=self._stream
        )


def select_input_source(
    answers: Optional[Mapping[str, Any]] = None,
    interactive: Optional[bool] = None,
    console: Optional[Console] = None,
) -> InputSource:
    """Choose the input strategy once, at command startup."""
    if interactive is None:
        interactive = is_interactive()
    if interactive:
        return InteractiveInput(answers, console=console)
    return ScriptedInput(answers)
