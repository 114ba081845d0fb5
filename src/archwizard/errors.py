"""Wizard error taxonomy."""

from __future__ import annotations


class WizardError(Exception):
    """Base class for wizard failures surfaced to the user."""


class ValidationError(WizardError):
    """Raised when an answer is rejected; the element is prompted again."""


class CancellationError(WizardError):
    """Raised when the user dismisses a prompt and the whole run is aborted."""

    def __init__(self, msg: str = "Project generation has been canceled.") -> None:
        super().__init__(msg)


class StructuralAnomaly(WizardError):
    """Raised (in strict mode) when the iteration ceiling trips on a malformed tree."""


class GenerationFailure(WizardError):
    """Raised when the external generator fails or omits its success marker."""

    def __init__(
        self,
        msg: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(msg)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
