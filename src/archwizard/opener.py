"""Open a freshly generated project in the host.

Which choices are offered depends on the host:

| Host state              | Offered                        |
|-------------------------|--------------------------------|
| workspace folders open  | new window, add to workspace   |
| only loose files open   | new window, current window     |
| nothing open            | (none: opens in current window)|
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import click
import yaml

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class OpenAction(enum.Enum):
    CURRENT_WINDOW = "Open in current window"
    NEW_WINDOW = "Open in new window"
    ADD_TO_WORKSPACE = "Add to current workspace"


@dataclass(frozen=True)
class HostState:
    """What the host currently has open."""

    workspace_folders: tuple[Path, ...] = ()
    open_files: int = 0


class ProjectHost(Protocol):
    def open_folder(self, path: Path, *, new_window: bool) -> None: ...

    def add_workspace_folder(self, path: Path) -> None: ...


def available_actions(host: HostState) -> tuple[OpenAction, ...]:
    """Choices to offer; empty means open in the current window unasked."""
    if host.workspace_folders:
        return (OpenAction.NEW_WINDOW, OpenAction.ADD_TO_WORKSPACE)
    if host.open_files > 0:
        return (OpenAction.NEW_WINDOW, OpenAction.CURRENT_WINDOW)
    return ()


def open_generated_project(
    project_dir: Path,
    state: HostState,
    host: ProjectHost,
    choose: Callable[[tuple[OpenAction, ...]], OpenAction | None],
) -> OpenAction | None:
    """Open *project_dir* according to host state and the user's choice.

    Returns the action taken, or None if the user dismissed the choice.
    """
    actions = available_actions(state)
    action = choose(actions) if actions else OpenAction.CURRENT_WINDOW
    if action is None or (actions and action not in actions):
        logger.debug("Open choice dismissed for %s", project_dir)
        return None

    if action is OpenAction.ADD_TO_WORKSPACE:
        host.add_workspace_folder(project_dir)
    else:
        host.open_folder(project_dir, new_window=action is OpenAction.NEW_WINDOW)
    return action


# ---------------------------------------------------------------------------
# Terminal host: workspace modelled as a YAML file with a ``folders`` list
# ---------------------------------------------------------------------------


@dataclass
class WorkspaceFileHost:
    """Host backed by an optional workspace YAML file and the system launcher."""

    workspace_file: Path | None = None
    folders: list[Path] = field(default_factory=list)
    # Everything else in the workspace file, written back untouched.
    settings: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, workspace_file: Path | None) -> WorkspaceFileHost:
        host = cls(workspace_file=workspace_file)
        if workspace_file is None or not workspace_file.is_file():
            return host
        data = yaml.safe_load(workspace_file.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            msg = f"{workspace_file}: workspace file must be a mapping"
            raise ValueError(msg)
        host.settings = data
        raw_folders = data.get("folders") or []
        if not isinstance(raw_folders, list):
            msg = f"{workspace_file}: 'folders' must be a list"
            raise ValueError(msg)
        for entry in raw_folders:
            raw_path = entry.get("path") if isinstance(entry, dict) else entry
            if raw_path:
                host.folders.append(Path(str(raw_path)))
        return host

    def host_state(self) -> HostState:
        return HostState(workspace_folders=tuple(self.folders))

    def open_folder(self, path: Path, *, new_window: bool) -> None:
        logger.info("Opening %s (%s)", path, "new window" if new_window else "current window")
        click.launch(str(path))

    def add_workspace_folder(self, path: Path) -> None:
        if self.workspace_file is None:
            msg = "No workspace file to add the project to"
            raise ValueError(msg)
        self.folders.append(path)
        data = dict(self.settings)
        data["folders"] = [{"path": str(folder)} for folder in self.folders]
        self.workspace_file.write_text(
            yaml.safe_dump(data, sort_keys=False), encoding="utf-8"
        )
        self.settings = data
        logger.info("Added %s to workspace %s", path, self.workspace_file)
