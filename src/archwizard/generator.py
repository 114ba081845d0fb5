"""External project generator invocation.

The generator is a CLI run in batch mode::

    <cli> init --batch --reset --url <archetype-url> -D<k1>=<v1> -D<k2>=<v2> ...

It reports success on stdout with ``Switch directory to <dir> to use CLI``.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from archwizard.errors import GenerationFailure

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "Switch directory to "
SUCCESS_MARKER_END = "to use CLI"


@dataclass(frozen=True)
class GenerationResult:
    """A successful generator run."""

    project_dir: Path
    stdout: str
    stderr: str


def build_init_args(properties: Mapping[str, str], archetype_url: str) -> list[str]:
    """Arguments for ``init``: fixed flags, then one ``-D`` per property in map order."""
    args = ["init", "--batch", "--reset", "--url", archetype_url]
    args.extend(f"-D{name}={value}" for name, value in properties.items())
    return args


def render_init_command(properties: Mapping[str, str], archetype_url: str) -> str:
    """The ``init`` invocation as a single space-separated string."""
    return " ".join(build_init_args(properties, archetype_url))


def extract_project_dir(stdout: str) -> str | None:
    """Return the directory between the success markers, or None."""
    start = stdout.find(SUCCESS_MARKER)
    if start < 0:
        return None
    start += len(SUCCESS_MARKER)
    end = stdout.find(SUCCESS_MARKER_END, start)
    if end < 0:
        return None
    project_dir = stdout[start:end].strip()
    return project_dir or None


def generate_project(
    properties: Mapping[str, str],
    *,
    cli_command: Sequence[str],
    archetype_url: str,
    cwd: Path,
    timeout: float | None = None,
) -> GenerationResult:
    """Run the generator in *cwd* and return the generated project directory.

    Raises
    ------
    GenerationFailure
        If the executable is missing, times out, exits non-zero, or does
        not print the success marker.  Raw stdout/stderr are attached.
    """
    if not archetype_url:
        msg = "No archetype URL configured (set archetype_url or pass --url)."
        raise GenerationFailure(msg)

    argv = [*cli_command, *build_init_args(properties, archetype_url)]
    logger.info("Running: %s", shlex.join(argv))

    try:
        result = subprocess.run(  # noqa: S603
            argv,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        msg = f"Generator executable not found: {cli_command[0]}"
        raise GenerationFailure(msg) from exc
    except subprocess.TimeoutExpired as exc:
        msg = f"Generator timed out after {timeout} seconds"
        raise GenerationFailure(
            msg,
            stdout=_decoded(exc.stdout),
            stderr=_decoded(exc.stderr),
        ) from exc

    logger.debug("Generator stdout:\n%s", result.stdout)
    if result.stderr:
        logger.debug("Generator stderr:\n%s", result.stderr)

    if result.returncode != 0:
        msg = f"Project generation failed (exit status {result.returncode})."
        raise GenerationFailure(
            msg, stdout=result.stdout, stderr=result.stderr, returncode=result.returncode
        )

    project_dir = extract_project_dir(result.stdout)
    if project_dir is None:
        msg = "Project generation failed: generator did not report a project directory."
        raise GenerationFailure(
            msg, stdout=result.stdout, stderr=result.stderr, returncode=result.returncode
        )

    path = Path(project_dir)
    if not path.is_absolute():
        path = cwd / path
    return GenerationResult(project_dir=path, stdout=result.stdout, stderr=result.stderr)


def _decoded(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
