"""Reversible commands and the back-navigation history.

One command is created for every element about to be prompted and pushed
on the :class:`CommandHistory` when the answer is accepted.  ``undo``
restores exactly the state ``apply`` started from: the element's answer
is cleared, any children the command appended are dropped (visited or
not) and the cursor moves back by one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from archwizard.elements import Element, Option, SelectionElement
    from archwizard.state import WizardState


def _check_apply(index: int, state: WizardState) -> None:
    if state.cursor != index:
        msg = f"command for element {index} applied at cursor {state.cursor}"
        raise ValueError(msg)


def _check_undo(index: int, state: WizardState) -> None:
    if state.cursor != index + 1:
        msg = f"command for element {index} undone at cursor {state.cursor}"
        raise ValueError(msg)


@dataclass(frozen=True)
class TextCommand:
    """Sets a text answer."""

    index: int
    value: str

    @classmethod
    def for_state(cls, state: WizardState, value: str) -> TextCommand:
        return cls(index=state.cursor, value=value)

    def apply(self, state: WizardState) -> WizardState:
        _check_apply(self.index, state)
        return state.with_answer(self.index, self.value).moved(1)

    def undo(self, state: WizardState) -> WizardState:
        _check_undo(self.index, state)
        return state.moved(-1).with_answer(self.index, None)


@dataclass(frozen=True)
class OptionCommand:
    """Sets a selection answer and appends the chosen options' children.

    ``values`` keep the order the user selected them in; ``revealed`` are
    the children of the chosen options in option declaration order.
    ``prior_length`` is the pending length the command was created
    against and is what ``undo`` truncates back to.
    """

    index: int
    values: tuple[str, ...]
    revealed: tuple[Element, ...]
    prior_length: int

    @classmethod
    def for_state(
        cls, state: WizardState, element: SelectionElement, chosen: tuple[Option, ...]
    ) -> OptionCommand:
        declared = [opt for opt in element.options if opt in chosen]
        revealed: list[Element] = []
        for option in declared:
            revealed.extend(option.children)
        return cls(
            index=state.cursor,
            values=tuple(opt.value for opt in chosen),
            revealed=tuple(revealed),
            prior_length=len(state.pending),
        )

    def apply(self, state: WizardState) -> WizardState:
        _check_apply(self.index, state)
        if len(state.pending) != self.prior_length:
            msg = (
                f"command for element {self.index} expects {self.prior_length} "
                f"pending elements, found {len(state.pending)}"
            )
            raise ValueError(msg)
        return state.with_answer(self.index, self.values).extended(self.revealed).moved(1)

    def undo(self, state: WizardState) -> WizardState:
        _check_undo(self.index, state)
        return state.moved(-1).truncated(self.prior_length).with_answer(self.index, None)


# Every command carries ``index`` and exposes ``apply`` and ``undo``.
AnyCommand = Union[TextCommand, OptionCommand]


class CommandHistory:
    """LIFO stack of applied commands."""

    def __init__(self) -> None:
        self._stack: list[AnyCommand] = []

    def __len__(self) -> int:
        return len(self._stack)

    def push(self, command: AnyCommand) -> None:
        self._stack.append(command)

    def pop(self) -> AnyCommand | None:
        """Remove and return the most recent command, or None if empty."""
        if not self._stack:
            return None
        return self._stack.pop()

    def peek(self) -> AnyCommand | None:
        return self._stack[-1] if self._stack else None

    def clear(self) -> None:
        self._stack.clear()
