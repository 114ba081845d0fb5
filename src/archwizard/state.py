"""Wizard traversal state.

:class:`WizardState` is a value: every transition returns a new instance.
``pending`` is append-only within a run, ``answers`` holds one slot per
pending element (``None`` until answered) and ``cursor`` is the index of
the next element to prompt.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from collections.abc import Iterator

    from archwizard.elements import Element

# Text answers are a string; selection answers the chosen option values
# in selection order.
Answer = Union[str, tuple[str, ...]]


@dataclass(frozen=True)
class WizardState:
    """Immutable snapshot of a wizard run."""

    pending: tuple[Element, ...] = ()
    answers: tuple[Answer | None, ...] = ()
    cursor: int = 0

    def __post_init__(self) -> None:
        if len(self.answers) != len(self.pending):
            msg = (
                f"answers ({len(self.answers)}) must align with "
                f"pending ({len(self.pending)})"
            )
            raise ValueError(msg)
        if not 0 <= self.cursor <= len(self.pending):
            msg = f"cursor {self.cursor} out of range 0..{len(self.pending)}"
            raise ValueError(msg)

    @classmethod
    def initial(cls, elements: tuple[Element, ...]) -> WizardState:
        """Fresh state with nothing answered and the cursor at the start."""
        return cls(pending=elements, answers=(None,) * len(elements), cursor=0)

    @property
    def is_complete(self) -> bool:
        return self.cursor == len(self.pending)

    @property
    def current(self) -> Element | None:
        """Element under the cursor, or None once traversal is complete."""
        if self.is_complete:
            return None
        return self.pending[self.cursor]

    def answer_at(self, index: int) -> Answer | None:
        return self.answers[index]

    def answered(self) -> Iterator[tuple[Element, Answer | None]]:
        """Yield ``(element, answer)`` pairs in pending order."""
        yield from zip(self.pending, self.answers)

    def with_answer(self, index: int, answer: Answer | None) -> WizardState:
        answers = list(self.answers)
        answers[index] = answer
        return replace(self, answers=tuple(answers))

    def extended(self, elements: tuple[Element, ...]) -> WizardState:
        """Append *elements* to the end of ``pending``, unanswered."""
        if not elements:
            return self
        return replace(
            self,
            pending=self.pending + elements,
            answers=self.answers + (None,) * len(elements),
        )

    def truncated(self, length: int) -> WizardState:
        """Drop everything after the first *length* pending elements."""
        return replace(
            self,
            pending=self.pending[:length],
            answers=self.answers[:length],
            cursor=min(self.cursor, length),
        )

    def moved(self, delta: int) -> WizardState:
        return replace(self, cursor=self.cursor + delta)
