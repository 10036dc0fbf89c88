from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .validate import ValidationIssue


class ModelGenError(Exception):
    """Base error carrying a machine-readable code and optional details."""

    code = "MODEL_GEN_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def __str__(self) -> str:
        return self.message


class ModelValidationError(ModelGenError, ValueError):
    """One or more structural rules are violated.

    `issues` holds every issue found in the pass (errors and warnings);
    `errors` is the message list of the error-severity subset.
    """

    code = "MODEL_VALIDATION_ERROR"

    def __init__(self, subject: str, issues: Sequence["ValidationIssue"]):
        self.issues = list(issues)
        self.errors = [iss.message for iss in self.issues if iss.severity == "error"]
        super().__init__(
            f"{subject} validation failed: " + "; ".join(self.errors),
            details={"errors": self.errors},
        )


class UnknownProcessError(ModelGenError, KeyError):
    code = "UNKNOWN_PROCESS"

    def __init__(self, name: str, known: Sequence[str] = ()):
        self.name = name
        hint = f" (known: {', '.join(known)})" if known else ""
        super().__init__(f"Unknown process: {name!r}{hint}", details={"name": name})


class UnknownGrammarError(ModelGenError, ValueError):
    code = "UNKNOWN_GRAMMAR"

    def __init__(self, value: object, known: Sequence[str] = ()):
        self.value = value
        hint = f"; expected one of: {', '.join(known)}" if known else ""
        super().__init__(
            f"Unsupported diagram format: {value!r}{hint}", details={"value": value}
        )


class RenderError(ModelGenError, ValueError):
    code = "RENDER_ERROR"


class ModelFormatError(ModelGenError, ValueError):
    code = "MODEL_FORMAT_ERROR"


class ConfigError(ModelGenError, ValueError):
    code = "CONFIG_ERROR"
