"""Wizard controller: the forward/back traversal loop.

The controller owns the :class:`~archwizard.state.WizardState` and the
:class:`~archwizard.commands.CommandHistory` for the duration of a run.
Each loop turn prompts exactly one element through a
:class:`PromptProvider` and waits for one of three outcomes:

* :class:`Accepted` - validate, apply the matching command, push it.
* :class:`BackRequested` - pop and undo the last command (no-op at start).
* :class:`Cancelled` - abort the run with :class:`CancellationError`.

A rejected answer re-prompts the same element with a validation message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union

from archwizard.collector import collect
from archwizard.commands import CommandHistory, OptionCommand, TextCommand
from archwizard.elements import KIND_LIST, KIND_TEXT, option_for
from archwizard.errors import CancellationError, StructuralAnomaly, ValidationError

if TYPE_CHECKING:
    from archwizard.collector import PropertyMap
    from archwizard.commands import AnyCommand
    from archwizard.elements import Element, Option
    from archwizard.state import Answer, WizardState

logger = logging.getLogger(__name__)

DEFAULT_ITERATION_CEILING = 100

EMPTY_TEXT_MESSAGE = "Value cannot be empty."
EMPTY_SELECTION_MESSAGE = "Select at least one option."


# ---------------------------------------------------------------------------
# Prompt protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Accepted:
    """The user accepted an answer: text, or the chosen option values."""

    value: Answer


@dataclass(frozen=True)
class BackRequested:
    """The user asked to return to the previous element."""


@dataclass(frozen=True)
class Cancelled:
    """The user dismissed the prompt."""


PromptOutcome = Union[Accepted, BackRequested, Cancelled]


@dataclass(frozen=True)
class PromptRequest:
    """Everything a prompt provider needs to render one element."""

    element: Element
    step: int  # 1-based
    total_steps: int
    can_go_back: bool
    validation_message: str | None = None

    @property
    def default(self) -> str | None:
        return self.element.default_value


class PromptProvider(Protocol):
    """Host-side UI that asks one question at a time."""

    async def prompt(self, request: PromptRequest) -> PromptOutcome: ...


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_text(value: str) -> str | None:
    """Return a validation message for *value*, or None if acceptable."""
    if value:
        return None
    return EMPTY_TEXT_MESSAGE


def _as_values(value: Answer) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(value)


def resolve_answer(element: Element, value: Answer) -> tuple[Option, ...] | str:
    """Check an accepted value against *element*.

    Returns the text for ``text`` elements, or the chosen options in
    selection order for selection elements.

    Raises
    ------
    ValidationError
        Empty text, no selection, more than one value for a single-select
        element, or a value that is not a declared option.
    """
    if element.kind == KIND_TEXT:
        text = value if isinstance(value, str) else ",".join(value)
        message = validate_text(text)
        if message:
            raise ValidationError(message)
        return text

    values = _as_values(value)
    if not values:
        raise ValidationError(EMPTY_SELECTION_MESSAGE)
    if element.kind != KIND_LIST and len(values) > 1:
        msg = f"Select exactly one option for '{element.name}'."
        raise ValidationError(msg)
    if len(set(values)) != len(values):
        msg = f"Duplicate selection for '{element.name}'."
        raise ValidationError(msg)

    chosen: list[Option] = []
    for item in values:
        option = option_for(element, item)  # type: ignore[arg-type]
        if option is None:
            msg = f"Unknown option '{item}' for '{element.name}'."
            raise ValidationError(msg)
        chosen.append(option)
    return tuple(chosen)


def build_command(state: WizardState, value: Answer) -> AnyCommand:
    """Validate *value* for the current element and build its command."""
    element = state.current
    if element is None:
        msg = "wizard traversal is already complete"
        raise ValueError(msg)
    resolved = resolve_answer(element, value)
    if isinstance(resolved, str):
        return TextCommand.for_state(state, resolved)
    return OptionCommand.for_state(state, element, resolved)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class WizardController:
    """Drives one wizard run over a loaded state."""

    def __init__(
        self,
        state: WizardState,
        provider: PromptProvider,
        *,
        iteration_ceiling: int = DEFAULT_ITERATION_CEILING,
        strict_ceiling: bool = False,
    ) -> None:
        if iteration_ceiling <= 0:
            msg = f"iteration_ceiling must be positive, got {iteration_ceiling}"
            raise ValueError(msg)
        self._initial = state
        self._state = state
        self._provider = provider
        self._history = CommandHistory()
        self._iteration_ceiling = iteration_ceiling
        self._strict_ceiling = strict_ceiling
        self._running = False
        self.ceiling_tripped = False

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def history(self) -> CommandHistory:
        return self._history

    def restart(self) -> None:
        """Rewind to the loaded state and forget all history."""
        if self._running:
            msg = "cannot restart while a run is in progress"
            raise RuntimeError(msg)
        self._state = self._initial
        self._history.clear()
        self.ceiling_tripped = False

    def accept(self, value: Answer) -> None:
        """Apply an accepted answer to the current element.

        Raises :class:`ValidationError` and leaves state untouched if the
        answer is rejected.
        """
        command = build_command(self._state, value)
        self._state = command.apply(self._state)
        self._history.push(command)
        logger.debug(
            "Accepted %r for element %d, cursor=%d pending=%d",
            value,
            command.index,
            self._state.cursor,
            len(self._state.pending),
        )

    def back(self) -> bool:
        """Undo the last accepted answer.  Returns False at the first element."""
        command = self._history.pop()
        if command is None:
            logger.debug("Back requested with empty history; staying at first element")
            return False
        self._state = command.undo(self._state)
        logger.debug(
            "Undid element %d, cursor=%d pending=%d",
            command.index,
            self._state.cursor,
            len(self._state.pending),
        )
        return True

    async def run(self) -> PropertyMap:
        """Prompt until every pending element is answered, then collect.

        Raises
        ------
        CancellationError
            If the user dismisses a prompt.  Nothing is collected.
        StructuralAnomaly
            If the iteration ceiling trips and ``strict_ceiling`` is set.
        """
        if self._running:
            msg = "wizard run already in progress"
            raise RuntimeError(msg)
        self._running = True
        try:
            await self._loop()
        finally:
            self._running = False
        return collect(self._state)

    async def _loop(self) -> None:
        turns = 0
        validation_message: str | None = None
        while not self._state.is_complete:
            if turns >= self._iteration_ceiling:
                self._trip_ceiling(turns)
                return
            turns += 1

            element = self._state.pending[self._state.cursor]
            request = PromptRequest(
                element=element,
                step=self._state.cursor + 1,
                total_steps=len(self._state.pending),
                can_go_back=len(self._history) > 0,
                validation_message=validation_message,
            )
            outcome = await self._provider.prompt(request)
            validation_message = None

            if isinstance(outcome, Cancelled):
                logger.debug("Prompt for '%s' cancelled", element.name)
                raise CancellationError
            if isinstance(outcome, BackRequested):
                self.back()
                continue
            try:
                self.accept(outcome.value)
            except ValidationError as exc:
                validation_message = str(exc)
                logger.debug("Rejected answer for '%s': %s", element.name, exc)

    def _trip_ceiling(self, turns: int) -> None:
        self.ceiling_tripped = True
        msg = (
            f"Iteration ceiling of {self._iteration_ceiling} reached after {turns} prompts "
            f"with {len(self._state.pending) - self._state.cursor} elements unanswered; "
            "the tree may be malformed"
        )
        if self._strict_ceiling:
            raise StructuralAnomaly(msg)
        logger.warning("%s", msg)


async def run_wizard(
    state: WizardState,
    provider: PromptProvider,
    *,
    iteration_ceiling: int = DEFAULT_ITERATION_CEILING,
    strict_ceiling: bool = False,
) -> PropertyMap:
    """Run a wizard over *state* and return the collected property map."""
    controller = WizardController(
        state,
        provider,
        iteration_ceiling=iteration_ceiling,
        strict_ceiling=strict_ceiling,
    )
    return await controller.run()
