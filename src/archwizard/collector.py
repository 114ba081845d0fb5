"""Fold a finished wizard state into the flat property map."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from archwizard.elements import KIND_LIST, KIND_TEXT

if TYPE_CHECKING:
    from archwizard.elements import Element
    from archwizard.state import Answer, WizardState

logger = logging.getLogger(__name__)

PropertyMap = dict[str, str]


def _answer_value(element: Element, answer: Answer | None) -> str:
    if answer is None:
        return ""
    if element.kind == KIND_TEXT:
        return answer if isinstance(answer, str) else ",".join(answer)
    if isinstance(answer, str):
        return answer
    if element.kind == KIND_LIST:
        return ",".join(answer)
    # boolean / enum: single selected value
    return answer[0] if answer else ""


def duplicate_names(state: WizardState) -> list[str]:
    """Names used by more than one pending element, in first-seen order."""
    counts = Counter(element.name for element in state.pending)
    return [name for name, count in counts.items() if count > 1]


def collect(state: WizardState) -> PropertyMap:
    """Return ``{element.name: value}`` for every pending element.

    Visited or not: unanswered elements map to ``""``.  ``list`` answers
    are comma-joined in selection order.  On duplicate names the last
    element wins; duplicates are logged as a warning.
    """
    for name in duplicate_names(state):
        logger.warning("Duplicate property name '%s': last answer wins", name)

    properties: PropertyMap = {}
    for element, answer in state.answered():
        properties[element.name] = _answer_value(element, answer)
    return properties
