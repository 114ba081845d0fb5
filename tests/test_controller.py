"""Tests for archwizard.controller: the traversal loop."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from archwizard.controller import (
    EMPTY_SELECTION_MESSAGE,
    EMPTY_TEXT_MESSAGE,
    Accepted,
    BackRequested,
    Cancelled,
    WizardController,
    build_command,
    resolve_answer,
    run_wizard,
)
from archwizard.elements import EnumElement, ListElement, Option, TextElement
from archwizard.errors import CancellationError, StructuralAnomaly, ValidationError
from archwizard.state import WizardState
from archwizard.tree_loader import load

if TYPE_CHECKING:
    from collections.abc import Callable

YES = Accepted(("true",))
NO = Accepted(("false",))
BACK = BackRequested()


def _names(state: WizardState) -> list[str]:
    return [e.name for e in state.pending]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestResolveAnswer:
    def test_text_ok(self) -> None:
        assert resolve_answer(TextElement(name="t"), "demo") == "demo"

    def test_text_empty(self) -> None:
        with pytest.raises(ValidationError, match=EMPTY_TEXT_MESSAGE):
            resolve_answer(TextElement(name="t"), "")

    def test_selection_empty(self) -> None:
        element = EnumElement(name="e", options=(Option("x", "x"),))
        with pytest.raises(ValidationError, match=EMPTY_SELECTION_MESSAGE):
            resolve_answer(element, ())

    def test_enum_single_string_value(self) -> None:
        element = EnumElement(name="e", options=(Option("X", "x"),))
        assert resolve_answer(element, "x") == (Option("X", "x"),)

    def test_enum_rejects_many(self) -> None:
        element = EnumElement(name="e", options=(Option("x", "x"), Option("y", "y")))
        with pytest.raises(ValidationError, match="exactly one"):
            resolve_answer(element, ("x", "y"))

    def test_unknown_option(self) -> None:
        element = ListElement(name="l", options=(Option("x", "x"),))
        with pytest.raises(ValidationError, match="Unknown option 'z'"):
            resolve_answer(element, ("x", "z"))

    def test_duplicate_selection(self) -> None:
        element = ListElement(name="l", options=(Option("x", "x"),))
        with pytest.raises(ValidationError, match="Duplicate"):
            resolve_answer(element, ("x", "x"))

    def test_list_keeps_selection_order(self) -> None:
        element = ListElement(name="l", options=(Option("a", "a"), Option("b", "b")))
        chosen = resolve_answer(element, ("b", "a"))
        assert [o.value for o in chosen] == ["b", "a"]  # type: ignore[union-attr]

    def test_build_command_on_complete_state(self) -> None:
        with pytest.raises(ValueError, match="already complete"):
            build_command(WizardState(), "x")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    @pytest.mark.asyncio()
    async def test_include_tests_yes(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([YES, Accepted("demo"), Accepted("junit")])
        controller = WizardController(load(scenario_tree), provider)
        properties = await controller.run()
        assert properties == {
            "includeTests": "true",
            "artifactId": "demo",
            "testFramework": "junit",
        }
        # testFramework is appended after artifactId but prompted in pending order.
        assert [r.element.name for r in provider.requests] == [
            "includeTests",
            "artifactId",
            "testFramework",
        ]

    @pytest.mark.asyncio()
    async def test_boolean_yes_grows_pending_by_one(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        controller = WizardController(load(scenario_tree), queue_provider([]))
        controller.accept(("true",))
        assert controller.state.cursor == 1
        assert _names(controller.state) == ["includeTests", "artifactId", "testFramework"]

    @pytest.mark.asyncio()
    async def test_include_tests_no(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([NO, Accepted("demo")])
        properties = await run_wizard(load(scenario_tree), provider)
        assert properties == {"includeTests": "false", "artifactId": "demo"}
        assert "testFramework" not in properties

    @pytest.mark.asyncio()
    async def test_back_twice_restores_state(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        initial = load(scenario_tree)
        controller = WizardController(initial, queue_provider([]))
        controller.accept(("true",))
        before_two = controller.state
        controller.accept("demo")
        controller.accept("junit")
        assert controller.state.is_complete

        assert controller.back()
        assert controller.back()
        assert controller.state == before_two

        assert controller.back()
        assert controller.state == initial

    @pytest.mark.asyncio()
    async def test_back_then_change_branch(
        self, archetype_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider(
            [
                Accepted("mp"),
                BACK,
                Accepted("se"),
                Accepted(("tracing", "metrics")),
                Accepted("demo"),
                Accepted("se-app"),
                Accepted("jaeger"),
            ]
        )
        properties = await run_wizard(load(archetype_tree), provider)
        assert properties == {
            "flavor": "se",
            "features": "tracing,metrics",
            "artifactId": "demo",
            "seName": "se-app",
            "tracer": "jaeger",
        }
        assert "mpName" not in properties
        assert "mpPort" not in properties


# ---------------------------------------------------------------------------
# Loop behaviour
# ---------------------------------------------------------------------------


class TestLoop:
    @pytest.mark.asyncio()
    async def test_empty_state_completes_immediately(
        self, queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([])
        assert await run_wizard(WizardState(), provider) == {}
        assert provider.requests == []

    @pytest.mark.asyncio()
    async def test_back_on_empty_history_is_noop(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([BACK, BACK, NO, Accepted("demo")])
        controller = WizardController(load(scenario_tree), provider)
        await controller.run()
        steps = [(r.element.name, r.step, r.can_go_back) for r in provider.requests]
        assert steps == [
            ("includeTests", 1, False),
            ("includeTests", 1, False),
            ("includeTests", 1, False),
            ("artifactId", 2, True),
        ]

    @pytest.mark.asyncio()
    async def test_invalid_answer_reprompts_with_message(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([NO, Accepted(""), Accepted("demo")])
        properties = await run_wizard(load(scenario_tree), provider)
        assert properties["artifactId"] == "demo"
        last, retry = provider.requests[-2], provider.requests[-1]
        assert last.validation_message is None
        assert retry.element.name == "artifactId"
        assert retry.validation_message == EMPTY_TEXT_MESSAGE

    @pytest.mark.asyncio()
    async def test_empty_selection_not_advanced(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([Accepted(()), NO, Accepted("demo")])
        await run_wizard(load(scenario_tree), provider)
        assert provider.requests[1].element.name == "includeTests"
        assert provider.requests[1].validation_message == EMPTY_SELECTION_MESSAGE

    @pytest.mark.asyncio()
    async def test_cancel_aborts_run(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([YES, Cancelled()])
        controller = WizardController(load(scenario_tree), provider)
        with pytest.raises(CancellationError, match="canceled"):
            await controller.run()
        # Committed history is left as is.
        assert len(controller.history) == 1

    @pytest.mark.asyncio()
    async def test_total_steps_tracks_pending(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        provider = queue_provider([YES, Accepted("demo"), Accepted("junit")])
        await run_wizard(load(scenario_tree), provider)
        assert [r.total_steps for r in provider.requests] == [2, 3, 3]

    @pytest.mark.asyncio()
    async def test_cursor_bounds_hold(
        self, archetype_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        outcomes = [BACK, Accepted("mp"), BACK, BACK, Accepted("mp"), Accepted(("health",))]
        outcomes += [BACK, Accepted(("metrics",)), Accepted("demo")]
        outcomes += [Accepted("n"), BACK, Accepted("n"), Accepted("8080")]
        controller = WizardController(load(archetype_tree), queue_provider(outcomes))
        properties = await controller.run()
        assert 0 <= controller.state.cursor <= len(controller.state.pending)
        assert properties["features"] == "metrics"
        assert properties["mpPort"] == "8080"

    @pytest.mark.asyncio()
    async def test_run_not_reentrant(
        self, scenario_tree: dict[str, Any]
    ) -> None:
        class ReentrantProvider:
            def __init__(self) -> None:
                self.controller: WizardController | None = None
                self.error: Exception | None = None

            async def prompt(self, request: object) -> Cancelled:
                assert self.controller is not None
                try:
                    await self.controller.run()
                except RuntimeError as exc:
                    self.error = exc
                return Cancelled()

        provider = ReentrantProvider()
        controller = WizardController(load(scenario_tree), provider)
        provider.controller = controller
        with pytest.raises(CancellationError):
            await controller.run()
        assert isinstance(provider.error, RuntimeError)

    @pytest.mark.asyncio()
    async def test_restart(
        self, scenario_tree: dict[str, Any], queue_provider: Callable[..., Any]
    ) -> None:
        initial = load(scenario_tree)
        controller = WizardController(initial, queue_provider([]))
        controller.accept(("true",))
        controller.restart()
        assert controller.state == initial
        assert len(controller.history) == 0


# ---------------------------------------------------------------------------
# Iteration ceiling
# ---------------------------------------------------------------------------


def _bouncing_outcomes(count: int) -> list[Any]:
    outcomes: list[Any] = []
    for _ in range(count):
        outcomes += [Accepted("a"), BACK]
    return outcomes


class TestIterationCeiling:
    @pytest.mark.asyncio()
    async def test_lenient_collects_partial(
        self, queue_provider: Callable[..., Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        state = WizardState.initial((TextElement(name="a"), TextElement(name="b")))
        controller = WizardController(
            state, queue_provider(_bouncing_outcomes(10)), iteration_ceiling=5
        )
        properties = await controller.run()
        assert controller.ceiling_tripped
        assert properties == {"a": "a", "b": ""}
        assert "Iteration ceiling of 5" in caplog.text

    @pytest.mark.asyncio()
    async def test_strict_raises(self, queue_provider: Callable[..., Any]) -> None:
        state = WizardState.initial((TextElement(name="a"), TextElement(name="b")))
        controller = WizardController(
            state,
            queue_provider(_bouncing_outcomes(10)),
            iteration_ceiling=4,
            strict_ceiling=True,
        )
        with pytest.raises(StructuralAnomaly, match="may be malformed"):
            await controller.run()

    @pytest.mark.asyncio()
    async def test_exact_ceiling_is_enough(self, queue_provider: Callable[..., Any]) -> None:
        state = WizardState.initial((TextElement(name="a"), TextElement(name="b")))
        provider = queue_provider([Accepted("1"), Accepted("2")])
        controller = WizardController(state, provider, iteration_ceiling=2, strict_ceiling=True)
        assert await controller.run() == {"a": "1", "b": "2"}
        assert not controller.ceiling_tripped

    def test_non_positive_ceiling(self, queue_provider: Callable[..., Any]) -> None:
        with pytest.raises(ValueError, match="positive"):
            WizardController(WizardState(), queue_provider([]), iteration_ceiling=0)
