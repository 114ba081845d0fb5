"""Terminal prompt provider built on rich.

Input conventions:

* ``<`` goes back to the previous question.
* Selections accept option numbers, values or labels; ``list`` questions
  take several, separated by commas.
* End of input (Ctrl-D) or Ctrl-C cancels the wizard.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from archwizard.controller import (
    Accepted,
    BackRequested,
    Cancelled,
    PromptOutcome,
    validate_text,
)
from archwizard.elements import BOOLEAN_FALSE, BOOLEAN_TRUE, KIND_BOOLEAN, KIND_LIST, KIND_TEXT

if TYPE_CHECKING:
    from archwizard.controller import PromptRequest
    from archwizard.elements import Element, SelectionElement

logger = logging.getLogger(__name__)

BACK_TOKEN = "<"

_YES = frozenset({"y", "yes", "true"})
_NO = frozenset({"n", "no", "false"})


def parse_selection(element: SelectionElement, raw: str) -> tuple[str, ...]:
    """Turn typed input into option values.

    Tokens that match nothing are passed through unchanged so the
    controller can reject them with a message.
    """
    tokens = [t.strip() for t in raw.split(",")] if element.kind == KIND_LIST else [raw.strip()]
    options = element.options
    values: list[str] = []
    for token in tokens:
        if not token:
            continue
        lower = token.lower()
        if element.kind == KIND_BOOLEAN:
            if lower in _YES:
                values.append(BOOLEAN_TRUE)
                continue
            if lower in _NO:
                values.append(BOOLEAN_FALSE)
                continue
        # Exact values win over option numbers.
        if any(o.value == token for o in options):
            values.append(token)
            continue
        if token.isdigit() and 1 <= int(token) <= len(options):
            values.append(options[int(token) - 1].value)
            continue
        match = next((o for o in options if o.label.lower() == lower), None)
        values.append(match.value if match else token)
    return tuple(values)


def _default_input(element: Element) -> str | None:
    default = element.default_value
    if default is None:
        return None
    if element.kind == KIND_BOOLEAN:
        return "yes" if default.lower() in _YES else "no"
    return default


class ConsolePromptProvider:
    """Asks one question at a time on the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    async def prompt(self, request: PromptRequest) -> PromptOutcome:
        # Blocking input is fine here: only one prompt is ever outstanding.
        try:
            return self._ask(request)
        except (EOFError, KeyboardInterrupt):
            logger.debug("Prompt for '%s' dismissed", request.element.name)
            self.console.print()
            return Cancelled()

    def _header(self, request: PromptRequest) -> None:
        element = request.element
        hint = f"  [dim](enter {BACK_TOKEN} to go back)[/dim]" if request.can_go_back else ""
        self.console.print(
            f"\n[bold]({request.step}/{request.total_steps})[/bold] {escape(element.label)}{hint}"
        )
        if request.validation_message:
            self.console.print(f"[red]{escape(request.validation_message)}[/red]")

    def _ask(self, request: PromptRequest) -> PromptOutcome:
        self._header(request)
        element = request.element
        if element.kind == KIND_TEXT:
            return self._ask_text(element)

        if element.kind != KIND_BOOLEAN:
            for i, option in enumerate(element.options, 1):  # type: ignore[union-attr]
                label, value = escape(option.label), escape(option.value)
                self.console.print(f"  {i}) {label} [dim]({value})[/dim]")
        prompt = "yes/no" if element.kind == KIND_BOOLEAN else element.name
        if element.kind == KIND_LIST:
            prompt += " (comma-separated)"

        default = _default_input(element)
        if default is None:
            raw = Prompt.ask(prompt, console=self.console)
        else:
            raw = Prompt.ask(prompt, console=self.console, default=default)
        if raw.strip() == BACK_TOKEN:
            return BackRequested()
        return Accepted(parse_selection(element, raw))  # type: ignore[arg-type]

    def _ask_text(self, element: Element) -> PromptOutcome:
        while True:
            if element.default_value:
                raw = Prompt.ask(
                    element.name, console=self.console, default=element.default_value
                )
            else:
                raw = Prompt.ask(element.name, console=self.console)
            value = raw.strip()
            if value == BACK_TOKEN:
                return BackRequested()
            message = validate_text(value)
            if message is None:
                return Accepted(value)
            self.console.print(f"[red]{message}[/red]")


def choose_from(
    console: Console, message: str, choices: list[str], *, default: str | None = None
) -> str | None:
    """Ask for one of *choices*; None on end of input."""
    try:
        if default is None:
            return Prompt.ask(message, console=console, choices=choices)
        return Prompt.ask(message, console=console, choices=choices, default=default)
    except (EOFError, KeyboardInterrupt):
        console.print()
        return None
