"""Destination folder resolution for the generated project."""

from __future__ import annotations

import enum
import logging
import shutil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)


class ConflictChoice(enum.Enum):
    """What to do when ``<folder>/<artifactId>`` already exists."""

    OVERWRITE = "overwrite"
    CHOOSE_ANOTHER = "choose another"
    ABORT = "abort"


def resolve_target_directory(
    artifact_id: str,
    choose_folder: Callable[[], Path | None],
    on_conflict: Callable[[Path], ConflictChoice | None],
) -> Path | None:
    """Ask for a parent folder until it has no ``artifact_id`` subfolder.

    *choose_folder* returns the picked folder or None if dismissed.
    *on_conflict* receives the existing subfolder; overwrite deletes it
    recursively, abort (or None) cancels.

    Returns the parent folder to generate into, or None if cancelled.
    """
    directory = choose_folder()
    while directory is not None and (directory / artifact_id).exists():
        existing = directory / artifact_id
        choice = on_conflict(existing)
        if choice is ConflictChoice.OVERWRITE:
            logger.info("Removing existing %s", existing)
            if existing.is_dir() and not existing.is_symlink():
                shutil.rmtree(existing)
            else:
                existing.unlink()
            break
        if choice is ConflictChoice.CHOOSE_ANOTHER:
            directory = choose_folder()
            continue
        return None
    return directory
