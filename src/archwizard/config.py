"""Configuration loading from ``archwizard.yml``."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import yaml

from archwizard.controller import DEFAULT_ITERATION_CEILING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "archwizard.yml"


@dataclass(frozen=True)
class WizardConfig:
    """Settings for a wizard run and the generator invocation."""

    cli_command: tuple[str, ...] = ("helidon",)
    archetype_url: str = ""
    iteration_ceiling: int = DEFAULT_ITERATION_CEILING
    strict_ceiling: bool = False
    generator_timeout: float | None = None

    def with_overrides(
        self, *, archetype_url: str | None = None, cli_command: str | None = None
    ) -> WizardConfig:
        """Return a copy with CLI option overrides applied."""
        config = self
        if archetype_url:
            config = replace(config, archetype_url=archetype_url)
        if cli_command:
            config = replace(config, cli_command=_parse_cli_command(cli_command, "--cli"))
        return config


def _parse_cli_command(raw: object, context: str) -> tuple[str, ...]:
    if isinstance(raw, str):
        parts = tuple(shlex.split(raw))
    elif isinstance(raw, list):
        parts = tuple(str(p) for p in raw)
    else:
        msg = f"{context}: cli_command must be a string or a list"
        raise ValueError(msg)
    if not parts:
        msg = f"{context}: cli_command must not be empty"
        raise ValueError(msg)
    return parts


def parse_config(raw: dict[str, Any], context: str = CONFIG_FILE_NAME) -> WizardConfig:
    """Build a :class:`WizardConfig` from a parsed YAML mapping.

    Missing keys keep their defaults.

    Raises
    ------
    ValueError
        On values of the wrong type or out of range.
    """
    kwargs: dict[str, Any] = {}

    if "cli_command" in raw:
        kwargs["cli_command"] = _parse_cli_command(raw["cli_command"], context)

    if "archetype_url" in raw:
        url = raw["archetype_url"]
        if not isinstance(url, str):
            msg = f"{context}: archetype_url must be a string"
            raise ValueError(msg)
        kwargs["archetype_url"] = url

    if "iteration_ceiling" in raw:
        ceiling = raw["iteration_ceiling"]
        if isinstance(ceiling, bool) or not isinstance(ceiling, int) or ceiling <= 0:
            msg = f"{context}: iteration_ceiling must be a positive integer"
            raise ValueError(msg)
        kwargs["iteration_ceiling"] = ceiling

    if "strict_ceiling" in raw:
        strict = raw["strict_ceiling"]
        if not isinstance(strict, bool):
            msg = f"{context}: strict_ceiling must be true or false"
            raise ValueError(msg)
        kwargs["strict_ceiling"] = strict

    if raw.get("generator_timeout") is not None:
        timeout = raw["generator_timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            msg = f"{context}: generator_timeout must be a positive number of seconds"
            raise ValueError(msg)
        kwargs["generator_timeout"] = float(timeout)

    return WizardConfig(**kwargs)


def load_config(path: Path) -> WizardConfig:
    """Load configuration from *path*.

    Falls back to defaults when the file is missing, unreadable or empty.
    """
    if not path.is_file():
        return WizardConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", path)
        return WizardConfig()

    if data is None:
        return WizardConfig()
    if not isinstance(data, dict):
        msg = f"{path}: configuration must be a mapping"
        raise ValueError(msg)
    return parse_config(data, str(path))
