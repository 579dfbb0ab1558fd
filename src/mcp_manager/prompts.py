"""Terminal prompt primitives.

The sync engine only talks to the ``Prompter`` protocol:

- ``select_one(message, choices)`` -- pick exactly one choice.
- ``select_many(message, choices)`` -- check zero or more choices.
- ``confirm(message, default)`` -- yes/no question.

Every method raises ``UserCancelled`` when the prompt is interrupted.
``ClickPrompter`` implements the protocol with ``click``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import click

from mcp_manager.exceptions import UserCancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Choice:
    """One labeled option in a selection prompt."""

    label: str
    value: Any
    checked: bool = False


class Prompter(Protocol):
    """Protocol that all prompt implementations must satisfy."""

    def select_one(self, message: str, choices: Sequence[Choice]) -> Any:
        ...  # pragma: no cover

    def select_many(
        self, message: str, choices: Sequence[Choice]
    ) -> list[Any]:
        ...  # pragma: no cover

    def confirm(self, message: str, default: bool = True) -> bool:
        ...  # pragma: no cover


def parse_selection(text: str, count: int) -> list[int] | None:
    """Parse a comma/space separated list of 1-based numbers and ranges.

    ``"1, 3-4"`` -> ``[0, 2, 3]``.  Returns ``None`` if any token is not a
    number or range within ``1..count``.  Duplicates are removed while
    keeping first-seen order.
    """
    indexes: list[int] = []
    for token in text.replace(",", " ").split():
        start, sep, end = token.partition("-")
        if not start.isdigit() or (sep and not end.isdigit()):
            return None
        lo = int(start)
        hi = int(end) if sep else lo
        if lo < 1 or hi > count or lo > hi:
            return None
        for number in range(lo, hi + 1):
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes


class ClickPrompter:
    """Numbered-menu prompts on the controlling terminal."""

    def select_one(self, message: str, choices: Sequence[Choice]) -> Any:
        click.echo(message)
        for number, choice in enumerate(choices, start=1):
            click.echo(f"  {number}) {choice.label}")
        try:
            picked = click.prompt(
                "Choice",
                type=click.IntRange(1, len(choices)),
                default=1,
            )
        except click.Abort:
            raise UserCancelled() from None
        return choices[picked - 1].value

    def select_many(
        self, message: str, choices: Sequence[Choice]
    ) -> list[Any]:
        click.echo(message)
        for number, choice in enumerate(choices, start=1):
            mark = "x" if choice.checked else " "
            click.echo(f"  [{mark}] {number}) {choice.label}")

        current = " ".join(
            str(n) for n, c in enumerate(choices, start=1) if c.checked
        )
        hint = "Numbers or ranges (e.g. 1,3-4), '-' for none, Ctrl+C to cancel"
        while True:
            try:
                answer = click.prompt(
                    hint, default=current or "-", show_default=True
                )
            except click.Abort:
                raise UserCancelled() from None
            if answer.strip() == "-":
                return []
            indexes = parse_selection(answer, len(choices))
            if indexes is not None:
                return [choices[i].value for i in indexes]
            click.echo(f"Invalid selection: {answer!r}")

    def confirm(self, message: str, default: bool = True) -> bool:
        try:
            return click.confirm(message, default=default)
        except click.Abort:
            raise UserCancelled() from None
