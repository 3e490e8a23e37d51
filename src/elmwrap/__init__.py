"""elmwrap - run the Elm compiler from Python."""

from .compiler import (
    _prepare_process_args,
    compile,
    compile_sync,
    compile_to_string,
    compile_to_string_sync,
)
from .exceptions import (
    CompilationError,
    CompilerValidationError,
    ElmParseError,
    ElmTypeError,
    ElmwrapError,
    EntryModuleNotFoundError,
    ProcessSpawnError,
    WorkerRuntimeError,
)
from .invoker import ProcessHandle
from .models.options import CompilerOptions
from .worker import NodeSandbox, Port, Sandbox, WorkerHandle, compile_worker

__all__ = [
    "CompilationError",
    "CompilerOptions",
    "CompilerValidationError",
    "ElmParseError",
    "ElmTypeError",
    "ElmwrapError",
    "EntryModuleNotFoundError",
    "NodeSandbox",
    "Port",
    "ProcessHandle",
    "ProcessSpawnError",
    "Sandbox",
    "WorkerHandle",
    "WorkerRuntimeError",
    "__version__",
    "_prepare_process_args",
    "compile",
    "compile_sync",
    "compile_to_string",
    "compile_to_string_sync",
    "compile_worker",
]

__version__ = "0.1.0"
