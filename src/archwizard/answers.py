"""Non-interactive prompt provider fed from an answers file.

Answers are looked up by element name.  Elements without an answer fall
back to their default value; if there is none the run is cancelled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import yaml

from archwizard.controller import Accepted, Cancelled, PromptOutcome
from archwizard.elements import BOOLEAN_FALSE, BOOLEAN_TRUE, KIND_BOOLEAN, KIND_LIST, KIND_TEXT

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from archwizard.controller import PromptRequest
    from archwizard.elements import Element
    from archwizard.state import Answer

logger = logging.getLogger(__name__)

_BOOLEAN_WORDS = {"yes": BOOLEAN_TRUE, "y": BOOLEAN_TRUE, "no": BOOLEAN_FALSE, "n": BOOLEAN_FALSE}


def _to_answer(element: Element, raw: object) -> Answer:
    if isinstance(raw, bool):
        raw = BOOLEAN_TRUE if raw else BOOLEAN_FALSE
    if element.kind == KIND_TEXT:
        return "" if raw is None else str(raw)

    values: tuple[str, ...]
    if isinstance(raw, (list, tuple)):
        values = tuple(str(v) for v in raw)
    elif raw is None:
        values = ()
    elif element.kind == KIND_LIST:
        values = tuple(v.strip() for v in str(raw).split(",") if v.strip())
    else:
        values = (str(raw),)

    if element.kind == KIND_BOOLEAN:
        values = tuple(_BOOLEAN_WORDS.get(v.lower(), v) for v in values)
    return values


class ScriptedPromptProvider:
    """Answers every prompt from a name-to-value mapping."""

    def __init__(self, answers: Mapping[str, Any], *, use_defaults: bool = True) -> None:
        self._answers = dict(answers)
        self._use_defaults = use_defaults

    async def prompt(self, request: PromptRequest) -> PromptOutcome:
        element = request.element
        if request.validation_message:
            # The same scripted answer would be rejected again.
            logger.error(
                "Answer for '%s' rejected: %s", element.name, request.validation_message
            )
            return Cancelled()

        if element.name in self._answers:
            raw = self._answers[element.name]
        elif self._use_defaults and request.default is not None:
            raw = request.default
        else:
            logger.error("No answer for '%s' and no default value", element.name)
            return Cancelled()
        return Accepted(_to_answer(element, raw))


def load_answers_file(path: Path) -> dict[str, Any]:
    """Read a YAML/JSON mapping of element name to answer."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid answers file: {exc}"
        raise ValueError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{path}: answers file must be a mapping"
        raise ValueError(msg)
    return {str(k): v for k, v in data.items()}
