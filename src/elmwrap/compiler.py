"""Public compile operations."""

import subprocess

from elmwrap.args import prepare_process_args, prepare_request_args
from elmwrap.capture import capture_output_async, capture_output_sync
from elmwrap.classify import unwrap_result
from elmwrap.constants import DEFAULT_OUTPUT_SUFFIX
from elmwrap.invoker import ProcessHandle, locate_executable, run, spawn
from elmwrap.models.options import CompileRequest, OptionsInput, SourcesInput

__all__ = [
    "_prepare_process_args",
    "compile",
    "compile_sync",
    "compile_to_string",
    "compile_to_string_sync",
]


def compile(  # noqa: A001
    sources: SourcesInput,
    options: OptionsInput = None,
    *,
    capture_output: bool = False,
) -> ProcessHandle:
    """
    Start `elm make` and hand back the running process.

    Everything that can be checked up front (options, sources, the executable)
    is checked here, so a bad call raises before any process exists.

    Args:
        sources: Entry module path, or several of them.
        options: Compiler options.
        capture_output: Pipe the compiler's stdout and stderr into the handle
            instead of letting them through to ours.

    Returns:
        The live process; wait on it to learn the exit code.

    Raises:
        CompilerValidationError: If the options, sources or executable are unusable.
        ProcessSpawnError: If the operating system cannot start the compiler.
    """
    request = CompileRequest.build(sources, options)
    executable = locate_executable(request.options)
    return spawn(executable, prepare_request_args(request), request.options, capture_output)


def compile_sync(
    sources: SourcesInput,
    options: OptionsInput = None,
) -> "subprocess.CompletedProcess[str]":
    """Run `elm make` to completion and return the finished process with its output."""
    request = CompileRequest.build(sources, options)
    executable = locate_executable(request.options)
    return run(executable, prepare_request_args(request), request.options)


async def compile_to_string(
    sources: SourcesInput,
    options: OptionsInput = None,
    *,
    suffix: str = DEFAULT_OUTPUT_SUFFIX,
) -> str:
    """
    Compile and return the generated code instead of writing it to a path.

    Args:
        sources: Entry module path, or several of them.
        options: Compiler options. `output` is not accepted here.
        suffix: Extension of the temporary artifact, which selects what the
            compiler emits (".js" or ".html").

    Raises:
        CompilerValidationError: If the options, sources or executable are unusable.
        ProcessSpawnError: If the operating system cannot start the compiler.
        CompilationError: If the compiler exits with a non-zero status.
    """
    request = CompileRequest.build(sources, options, mode="string")
    return unwrap_result(await capture_output_async(request, suffix))


def compile_to_string_sync(
    sources: SourcesInput,
    options: OptionsInput = None,
    *,
    suffix: str = DEFAULT_OUTPUT_SUFFIX,
) -> str:
    """Blocking counterpart of `compile_to_string`."""
    request = CompileRequest.build(sources, options, mode="string")
    return unwrap_result(capture_output_sync(request, suffix))


_prepare_process_args = prepare_process_args
