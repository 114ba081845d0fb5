"""Archwizard CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click

from archwizard import __version__
from archwizard.errors import CancellationError, GenerationFailure, WizardError

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from archwizard.collector import PropertyMap
    from archwizard.config import WizardConfig
    from archwizard.opener import OpenAction
    from archwizard.state import WizardState
    from archwizard.target_dir import ConflictChoice

logger = logging.getLogger(__name__)

ARTIFACT_ID_PROPERTY = "artifactId"


@click.group()
@click.version_option(version=__version__, prog_name="archwizard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Archwizard - archetype question wizard and project generator."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_tree(tree: Path) -> WizardState:
    from archwizard.tree_loader import load_tree_file

    try:
        return load_tree_file(tree)
    except ValueError as exc:
        _fail(str(exc))


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


def _format_elements(state: WizardState) -> str:
    """Format the pending elements as a plain-text table."""
    from archwizard.elements import is_selection

    lines: list[str] = [f"  Elements ({len(state.pending)}):"]
    for element in state.pending:
        default = f" [default: {element.default_value}]" if element.default_value else ""
        lines.append(f"    {element.name:24s} {element.kind:8s} {element.label}{default}")
        if not is_selection(element):
            continue
        for option in element.options:  # type: ignore[union-attr]
            nested = f" (+{len(option.children)} children)" if option.children else ""
            lines.append(f"      - {option.value}{nested}")
    return "\n".join(lines)


@main.command()
@click.argument("tree", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def inspect(*, tree: Path, as_json: bool) -> None:
    """Show the top-level questions a TREE file starts with."""
    from archwizard.collector import duplicate_names
    from archwizard.elements import is_selection

    state = _load_tree(tree)
    duplicates = duplicate_names(state)

    if as_json:
        payload = {
            "elements": [
                {
                    "name": e.name,
                    "kind": e.kind,
                    "label": e.label,
                    "default": e.default_value,
                    "options": (
                        [o.value for o in e.options]  # type: ignore[union-attr]
                        if is_selection(e)
                        else []
                    ),
                }
                for e in state.pending
            ],
            "duplicates": duplicates,
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    click.echo(_format_elements(state))
    for name in duplicates:
        click.echo(f"  Warning: duplicate property name '{name}'")


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


def _resolve_config(
    config_path: Path | None, url: str | None, cli_command: str | None
) -> WizardConfig:
    from archwizard.config import CONFIG_FILE_NAME, load_config

    path = config_path or Path.cwd() / CONFIG_FILE_NAME
    try:
        return load_config(path).with_overrides(archetype_url=url, cli_command=cli_command)
    except ValueError as exc:
        _fail(str(exc))


def _folder_chooser(
    console: Console, target: Path | None, *, batch: bool
) -> Callable[[], Path | None]:
    from rich.prompt import Prompt

    given = [target] if target is not None else []

    def choose() -> Path | None:
        if given:
            return given.pop()
        if batch:
            return None if target is not None else Path.cwd()
        while True:
            try:
                raw = Prompt.ask("Destination folder", console=console, default=str(Path.cwd()))
            except (EOFError, KeyboardInterrupt):
                console.print()
                return None
            folder = Path(raw).expanduser()
            if folder.is_dir():
                return folder
            console.print(f"[red]{folder} is not a directory.[/red]")

    return choose


def _conflict_handler(
    console: Console, *, batch: bool, overwrite: bool
) -> Callable[[Path], ConflictChoice | None]:
    from archwizard.prompts import choose_from
    from archwizard.target_dir import ConflictChoice

    def on_conflict(existing: Path) -> ConflictChoice | None:
        if overwrite:
            return ConflictChoice.OVERWRITE
        if batch:
            logger.error("'%s' already exists in selected directory", existing.name)
            return ConflictChoice.ABORT
        console.print(f"[yellow]'{existing.name}' already exists in selected directory.[/yellow]")
        answer = choose_from(
            console,
            "What would you like to do?",
            [c.value for c in ConflictChoice],
            default=ConflictChoice.ABORT.value,
        )
        return ConflictChoice(answer) if answer else None

    return on_conflict


def _open_chooser(console: Console) -> Callable[[tuple[OpenAction, ...]], OpenAction | None]:
    from archwizard.opener import OpenAction
    from archwizard.prompts import choose_from

    def choose(actions: tuple[OpenAction, ...]) -> OpenAction | None:
        labels = {str(i): action for i, action in enumerate(actions, 1)}
        console.print("\n[green]Your new project is ready.[/green]")
        for key, action in labels.items():
            console.print(f"  {key}) {action.value}")
        answer = choose_from(console, "Open it", list(labels), default="1")
        return labels.get(answer) if answer else None

    return choose


def _echo_properties(properties: PropertyMap, archetype_url: str, *, as_json: bool) -> None:
    from archwizard.generator import render_init_command

    command = render_init_command(properties, archetype_url)
    if as_json:
        payload = {"properties": properties, "command": command}
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    for name, value in properties.items():
        click.echo(f"  {name} = {value}")
    click.echo(f"\n  {command}")


def _run_generation(
    properties: PropertyMap,
    config: WizardConfig,
    console: Console,
    *,
    target: Path | None,
    batch: bool,
    overwrite: bool,
) -> Path:
    from archwizard.generator import generate_project
    from archwizard.target_dir import resolve_target_directory

    artifact_id = properties.get(ARTIFACT_ID_PROPERTY, "")
    if not artifact_id:
        _fail(f"property '{ARTIFACT_ID_PROPERTY}' is required to choose a target directory.")

    folder = resolve_target_directory(
        artifact_id,
        _folder_chooser(console, target, batch=batch),
        _conflict_handler(console, batch=batch, overwrite=overwrite),
    )
    if folder is None:
        raise CancellationError

    console.print("Your project is being created...")
    result = generate_project(
        properties,
        cli_command=config.cli_command,
        archetype_url=config.archetype_url,
        cwd=folder,
        timeout=config.generator_timeout,
    )
    console.print(f"[green]Project generated:[/green] {result.project_dir}")
    return result.project_dir


def _open_project(project_dir: Path, workspace: Path | None, console: Console) -> None:
    from archwizard.opener import WorkspaceFileHost, open_generated_project

    host = WorkspaceFileHost.from_file(workspace)
    action: OpenAction | None = open_generated_project(
        project_dir, host.host_state(), host, _open_chooser(console)
    )
    if action is not None:
        console.print(f"  {action.value}: {project_dir}")


@main.command()
@click.argument("tree", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--answers",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML answers file: run without prompting (batch mode).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./archwizard.yml).",
)
@click.option("--url", default=None, help="Archetype source URL (overrides config).")
@click.option("--cli", "cli_command", default=None, help="Generator command (overrides config).")
@click.option(
    "--target",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Folder to generate the project in.",
)
@click.option("--overwrite", is_flag=True, help="Replace an existing project folder.")
@click.option(
    "--workspace",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Workspace YAML file the project may be added to.",
)
@click.option("--no-open", is_flag=True, help="Do not open the generated project.")
@click.option("--dry-run", is_flag=True, help="Print properties and command, generate nothing.")
@click.option("--json", "as_json", is_flag=True, help="Output dry-run result as JSON.")
def run(
    *,
    tree: Path,
    answers: Path | None,
    config_path: Path | None,
    url: str | None,
    cli_command: str | None,
    target: Path | None,
    overwrite: bool,
    workspace: Path | None,
    no_open: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Answer the questions in TREE and generate the project."""
    import anyio
    from rich.console import Console

    from archwizard.controller import WizardController

    config = _resolve_config(config_path, url, cli_command)
    state = _load_tree(tree)
    console = Console(stderr=dry_run and as_json)

    if answers is not None:
        from archwizard.answers import ScriptedPromptProvider, load_answers_file

        try:
            provider = ScriptedPromptProvider(load_answers_file(answers))
        except ValueError as exc:
            _fail(str(exc))
    else:
        from archwizard.prompts import ConsolePromptProvider

        provider = ConsolePromptProvider(console)

    controller = WizardController(
        state,
        provider,
        iteration_ceiling=config.iteration_ceiling,
        strict_ceiling=config.strict_ceiling,
    )

    try:
        properties = anyio.run(controller.run)
        if dry_run:
            _echo_properties(properties, config.archetype_url, as_json=as_json)
            return
        project_dir = _run_generation(
            properties,
            config,
            console,
            target=target,
            batch=answers is not None,
            overwrite=overwrite,
        )
        if not no_open and answers is None:
            _open_project(project_dir, workspace, console)
    except CancellationError as exc:
        _fail(str(exc))
    except GenerationFailure as exc:
        if exc.stdout:
            click.echo(exc.stdout, err=True)
        if exc.stderr:
            click.echo(exc.stderr, err=True)
        _fail(str(exc))
    except (WizardError, ValueError) as exc:
        _fail(str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.debug("Unexpected failure", exc_info=True)
        _fail(str(exc) or type(exc).__name__)
