"""Wizard tree loader.

Flattens the top of a question tree into the initial pending list:

* A root step whose children include step nodes is unwrapped one level;
  those children become the steps.  Deeper step nesting is not flattened.
* Otherwise the root itself is the only step.
* Each step contributes its question children, in order.  Grandchildren
  (option children, boolean children) are not enqueued here; they are
  revealed during traversal by the chosen answers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import yaml

from archwizard.elements import KIND_STEP, StepNode, parse_node
from archwizard.state import WizardState

if TYPE_CHECKING:
    from pathlib import Path

    from archwizard.elements import Element, Node

logger = logging.getLogger(__name__)


def _as_root(raw: object) -> object:
    # A bare list of nodes is treated as the children of an anonymous step.
    if isinstance(raw, list):
        return {"type": KIND_STEP, "name": "", "children": raw}
    return raw


def _steps(root: Node) -> list[Node]:
    if not isinstance(root, StepNode):
        return [root]
    if any(isinstance(child, StepNode) for child in root.children):
        return list(root.children)
    return [root]


def flatten(root: Node | None) -> tuple[Element, ...]:
    """Return the initial pending elements for a parsed tree."""
    if root is None:
        return ()

    pending: list[Element] = []
    for step in _steps(root):
        if not isinstance(step, StepNode):
            # Question sitting next to the steps: enqueued in place.
            pending.append(step)
            continue
        for child in step.children:
            if isinstance(child, StepNode):
                logger.warning(
                    "Step '%s' nested under step '%s' is not expanded",
                    child.name or child.label,
                    step.name or step.label,
                )
                continue
            pending.append(child)
    return tuple(pending)


def load(raw_root: object) -> WizardState:
    """Build the initial :class:`WizardState` from a raw tree.

    ``None`` or an empty mapping/list yields an empty state, which
    completes immediately with an empty property map.

    Raises
    ------
    ValueError
        If the tree is malformed (see :func:`archwizard.elements.parse_node`).
    """
    if not raw_root:
        return WizardState()
    root = parse_node(_as_root(raw_root))
    elements = flatten(root)
    logger.debug("Loaded tree with %d top-level elements", len(elements))
    return WizardState.initial(elements)


def load_tree_file(path: Path) -> WizardState:
    """Read a YAML or JSON tree file and load it."""
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid tree file: {exc}"
        raise ValueError(msg) from exc
    return load(data)
