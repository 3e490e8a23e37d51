"""Turning a failed compiler run into a descriptive exception."""

from elmwrap.capture import CompilationResult
from elmwrap.constants import FAILURE_MARKERS, FailureKind
from elmwrap.exceptions import CompilationError, ElmParseError, ElmTypeError

__all__ = ["classify_failure", "failure_kind", "unwrap_result"]

_ERROR_TYPES: dict[FailureKind, type[CompilationError]] = {
    "parse": ElmParseError,
    "type": ElmTypeError,
    "generic": CompilationError,
}


def failure_kind(diagnostics: str) -> FailureKind:
    for kind, markers in FAILURE_MARKERS.items():
        if any(marker in diagnostics for marker in markers):
            return kind
    return "generic"


def classify_failure(result: CompilationResult) -> CompilationError:
    """
    Build the exception describing a failed run.

    The subclass is chosen from the diagnostic text alone; the message is the
    failure prefix followed by that text, untouched.
    """
    diagnostics = result.diagnostics
    return _ERROR_TYPES[failure_kind(diagnostics)](result.exit_code, diagnostics)


def unwrap_result(result: CompilationResult) -> str:
    """Return the compiled output, or raise the classified failure."""
    if not result.ok:
        raise classify_failure(result)
    return result.output or ""
