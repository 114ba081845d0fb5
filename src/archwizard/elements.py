"""Question node model.

A wizard tree is made of *step* nodes (pure grouping) and four question
kinds: ``boolean``, ``enum`` (single-select), ``list`` (multi-select) and
``text``.  Every question kind is its own frozen dataclass; :data:`Element`
is the union of them.  Answers are not stored on the nodes, see
:mod:`archwizard.state`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Union

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

KIND_BOOLEAN = "boolean"
KIND_ENUM = "enum"
KIND_LIST = "list"
KIND_TEXT = "text"
KIND_STEP = "step"

QUESTION_KINDS: frozenset[str] = frozenset({KIND_BOOLEAN, KIND_ENUM, KIND_LIST, KIND_TEXT})

# Archetype descriptors spell kinds as ``<kind>-element``.
_KIND_ALIASES: dict[str, str] = {
    "boolean-element": KIND_BOOLEAN,
    "enum-element": KIND_ENUM,
    "list-element": KIND_LIST,
    "text-element": KIND_TEXT,
    "step-element": KIND_STEP,
}

BOOLEAN_TRUE = "true"
BOOLEAN_FALSE = "false"


def normalize_kind(raw: object) -> str:
    """Map a node ``type`` value to one of the canonical kinds.

    Returns an empty string for anything unrecognised.
    """
    if not isinstance(raw, str):
        return ""
    lower = raw.strip().lower()
    lower = _KIND_ALIASES.get(lower, lower)
    if lower in QUESTION_KINDS or lower == KIND_STEP:
        return lower
    return ""


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Option:
    """One selectable option; choosing it activates its ``children``."""

    label: str
    value: str
    children: tuple[Element, ...] = ()


@dataclass(frozen=True)
class BooleanElement:
    """Yes/no question.  ``children`` are activated by answering yes."""

    kind: ClassVar[str] = KIND_BOOLEAN

    name: str
    label: str = ""
    default_value: str | None = None
    children: tuple[Element, ...] = ()

    @property
    def options(self) -> tuple[Option, ...]:
        return (
            Option(label="yes", value=BOOLEAN_TRUE, children=self.children),
            Option(label="no", value=BOOLEAN_FALSE),
        )


@dataclass(frozen=True)
class EnumElement:
    """Single-select question."""

    kind: ClassVar[str] = KIND_ENUM

    name: str
    options: tuple[Option, ...]
    label: str = ""
    default_value: str | None = None


@dataclass(frozen=True)
class ListElement:
    """Multi-select question."""

    kind: ClassVar[str] = KIND_LIST

    name: str
    options: tuple[Option, ...]
    label: str = ""
    default_value: str | None = None


@dataclass(frozen=True)
class TextElement:
    """Free-text question; the answer must be non-empty."""

    kind: ClassVar[str] = KIND_TEXT

    name: str
    label: str = ""
    default_value: str | None = None


Element = Union[BooleanElement, EnumElement, ListElement, TextElement]
SelectionElement = Union[BooleanElement, EnumElement, ListElement]


@dataclass(frozen=True)
class StepNode:
    """Grouping node; never prompted, only contributes its children."""

    name: str
    label: str = ""
    children: tuple[Node, ...] = ()


Node = Union[StepNode, BooleanElement, EnumElement, ListElement, TextElement]


def is_selection(element: Element) -> bool:
    """Return True for elements answered by choosing options."""
    return element.kind in (KIND_BOOLEAN, KIND_ENUM, KIND_LIST)


def option_for(element: SelectionElement, value: str) -> Option | None:
    """Return the declared option with *value*, or None."""
    for option in element.options:
        if option.value == value:
            return option
    return None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _text(data: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return _scalar(value)
    return None


def _scalar(value: object) -> str:
    # YAML turns ``true``/``false`` into bools; option values are strings.
    if isinstance(value, bool):
        return BOOLEAN_TRUE if value else BOOLEAN_FALSE
    return str(value)


def _parse_children(
    raw: object, context: str, active: set[int]
) -> tuple[Node, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = f"{context}: 'children' must be a list"
        raise ValueError(msg)
    return tuple(
        _parse_node(child, f"{context}.children[{i}]", active) for i, child in enumerate(raw)
    )


def _question_children(children: tuple[Node, ...], context: str) -> tuple[Element, ...]:
    for child in children:
        if isinstance(child, StepNode):
            msg = f"{context}: step node '{child.name}' cannot be nested under a question"
            raise ValueError(msg)
    return children  # type: ignore[return-value]


def _parse_options(
    raw: object, context: str, active: set[int]
) -> tuple[Option, ...]:
    if not isinstance(raw, list) or not raw:
        msg = f"{context}: 'options' must be a non-empty list"
        raise ValueError(msg)

    options: list[Option] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        opt_context = f"{context}.options[{i}]"
        if not isinstance(item, dict):
            msg = f"{opt_context}: option must be a mapping"
            raise ValueError(msg)
        value = _text(item, "value")
        if value is None:
            msg = f"{opt_context}: option requires 'value'"
            raise ValueError(msg)
        if value in seen:
            msg = f"{opt_context}: duplicate option value '{value}'"
            raise ValueError(msg)
        seen.add(value)
        label = _text(item, "label") or value
        children = _question_children(
            _parse_children(item.get("children"), opt_context, active), opt_context
        )
        options.append(Option(label=label, value=value, children=children))
    return tuple(options)


def _parse_node(data: object, context: str, active: set[int]) -> Node:
    if not isinstance(data, dict):
        msg = f"{context}: node must be a mapping"
        raise ValueError(msg)
    if id(data) in active:
        msg = f"{context}: cyclic tree structure"
        raise ValueError(msg)

    raw_kind = data.get("type", data.get("kind"))
    kind = normalize_kind(raw_kind)
    if not kind:
        msg = f"{context}: unknown node type {raw_kind!r}"
        raise ValueError(msg)

    name = _text(data, "name") or ""
    if kind != KIND_STEP and not name:
        msg = f"{context}: {kind} node requires 'name'"
        raise ValueError(msg)
    context = f"{context}({name})" if name else context
    label = _text(data, "label", "title") or name
    default = _text(data, "defaultValue", "default_value", "default")

    active.add(id(data))
    try:
        children = _parse_children(data.get("children"), context, active)
        if kind == KIND_STEP:
            return StepNode(name=name, label=label, children=children)
        if kind == KIND_BOOLEAN:
            return BooleanElement(
                name=name,
                label=label,
                default_value=default,
                children=_question_children(children, context),
            )
        if kind == KIND_TEXT:
            if children:
                logger.warning("%s: children of a text node are never activated", context)
            return TextElement(name=name, label=label, default_value=default)

        options = _parse_options(data.get("options"), context, active)
        if kind == KIND_ENUM:
            return EnumElement(name=name, options=options, label=label, default_value=default)
        return ListElement(name=name, options=options, label=label, default_value=default)
    finally:
        active.discard(id(data))


def parse_node(data: object, context: str = "root") -> Node:
    """Parse a raw mapping (from YAML/JSON) into a typed node tree.

    Raises
    ------
    ValueError
        If the tree is malformed: unknown type, missing name, an
        ``enum``/``list`` without options, an option without value, a
        repeated option value, or a cyclic structure.
    """
    return _parse_node(data, context, set())


def parse_element(data: object, context: str = "element") -> Element:
    """Parse a single question node.  Step nodes are rejected."""
    node = parse_node(data, context)
    if isinstance(node, StepNode):
        msg = f"{context}: expected a question node, got a step"
        raise ValueError(msg)
    return node
