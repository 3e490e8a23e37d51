"""Error taxonomy for elmwrap.

Every error raised by the package derives from :class:`ElmwrapError`, so callers
can catch the whole family at once or discriminate on the concrete subclass.
"""

from collections.abc import Iterable

from elmwrap.constants import FAILURE_PREFIX, FailureKind

__all__ = [
    "CompilationError",
    "CompilerValidationError",
    "ElmParseError",
    "ElmTypeError",
    "ElmwrapError",
    "EntryModuleNotFoundError",
    "ExecutableError",
    "ExecutableIsDirectoryError",
    "ExecutableNotExecutableError",
    "ExecutableNotFoundError",
    "InvalidOptionError",
    "PortDirectionError",
    "ProcessSpawnError",
    "UnknownOptionError",
    "WorkerRuntimeError",
]


class ElmwrapError(Exception):
    """Base class for every error raised by elmwrap."""


class CompilerValidationError(ElmwrapError):
    """Raised before any process is spawned when the request is unusable."""


class UnknownOptionError(CompilerValidationError):
    """Raised when the options contain keys outside the recognized set."""

    def __init__(self, message: str, keys: Iterable[str]) -> None:
        super().__init__(message)
        self.keys = tuple(keys)


class InvalidOptionError(CompilerValidationError):
    """Raised when a recognized option carries a value of the wrong shape."""


class ExecutableError(CompilerValidationError):
    """Raised when the compiler executable cannot be used."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class ExecutableNotFoundError(ExecutableError):
    pass


class ExecutableIsDirectoryError(ExecutableError):
    pass


class ExecutableNotExecutableError(ExecutableError):
    pass


class ProcessSpawnError(ElmwrapError):
    """Raised when the operating system refuses to start the compiler."""

    def __init__(self, message: str, executable: str) -> None:
        super().__init__(message)
        self.executable = executable


class CompilationError(ElmwrapError):
    """
    Raised when the compiler exits with a non-zero status.

    The message is always the fixed failure prefix followed by the compiler's
    diagnostics, unmodified, so callers can search it for compiler markers.
    """

    kind: FailureKind = "generic"

    def __init__(self, exit_code: int, diagnostics: str) -> None:
        super().__init__(f"{FAILURE_PREFIX}\n{diagnostics}")
        self.exit_code = exit_code
        self.diagnostics = diagnostics


class ElmParseError(CompilationError):
    kind: FailureKind = "parse"


class ElmTypeError(CompilationError):
    kind: FailureKind = "type"


class EntryModuleNotFoundError(ElmwrapError):
    """Raised when the compiled namespace has no module with the requested name."""

    def __init__(self, module_name: str, available: Iterable[str] = ()) -> None:
        self.module_name = module_name
        self.available = tuple(available)
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = f"I couldn't find the entry module {self.module_name}.\n"
        if len(self.available) == 1:
            message += f"\nMaybe you meant {self.available[0]}?\n"
        elif self.available:
            message += "\nYou defined these entry modules in the project:\n\n"
            message += "\n".join(self.available)
        return message


class WorkerRuntimeError(ElmwrapError):
    """Raised when the sandbox fails to run or talk to a worker program."""


class PortDirectionError(WorkerRuntimeError):
    """Raised when a port is used against its direction."""
