"""Shared test fixtures for Archwizard."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from archwizard.controller import Cancelled

if TYPE_CHECKING:
    from archwizard.controller import PromptOutcome, PromptRequest


class QueuePromptProvider:
    """Replays a fixed list of outcomes and records every request."""

    def __init__(self, outcomes: list[PromptOutcome]) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[PromptRequest] = []

    async def prompt(self, request: PromptRequest) -> PromptOutcome:
        self.requests.append(request)
        if not self.outcomes:
            return Cancelled()
        return self.outcomes.pop(0)


@pytest.fixture()
def queue_provider() -> type[QueuePromptProvider]:
    """Factory for scripted prompt providers: ``queue_provider([outcome, ...])``."""
    return QueuePromptProvider


@pytest.fixture()
def scenario_tree() -> dict[str, Any]:
    """Boolean with a text child, followed by a text question."""
    return {
        "type": "step",
        "name": "project",
        "label": "Project",
        "children": [
            {
                "type": "boolean",
                "name": "includeTests",
                "label": "Include tests?",
                "children": [
                    {
                        "type": "text",
                        "name": "testFramework",
                        "label": "Test framework",
                        "default": "junit",
                    },
                ],
            },
            {"type": "text", "name": "artifactId", "label": "Artifact ID"},
        ],
    }


@pytest.fixture()
def archetype_tree() -> dict[str, Any]:
    """Two steps with an enum and a list whose options reveal children."""
    return {
        "type": "step-element",
        "label": "Helidon",
        "children": [
            {
                "type": "step-element",
                "label": "Flavor",
                "children": [
                    {
                        "type": "enum-element",
                        "name": "flavor",
                        "label": "Select a flavor",
                        "options": [
                            {
                                "label": "Helidon SE",
                                "value": "se",
                                "children": [
                                    {"type": "text-element", "name": "seName", "label": "SE"},
                                ],
                            },
                            {
                                "label": "Helidon MP",
                                "value": "mp",
                                "children": [
                                    {"type": "text-element", "name": "mpName", "label": "MP"},
                                    {"type": "text-element", "name": "mpPort", "label": "Port"},
                                ],
                            },
                        ],
                    },
                ],
            },
            {
                "type": "step-element",
                "label": "Project",
                "children": [
                    {
                        "type": "list-element",
                        "name": "features",
                        "label": "Features",
                        "options": [
                            {"label": "Metrics", "value": "metrics"},
                            {
                                "label": "Tracing",
                                "value": "tracing",
                                "children": [
                                    {
                                        "type": "enum-element",
                                        "name": "tracer",
                                        "label": "Tracer",
                                        "options": [
                                            {"label": "Zipkin", "value": "zipkin"},
                                            {"label": "Jaeger", "value": "jaeger"},
                                        ],
                                    },
                                ],
                            },
                            {"label": "Health", "value": "health"},
                        ],
                    },
                    {"type": "text-element", "name": "artifactId", "label": "Artifact ID"},
                ],
            },
        ],
    }
