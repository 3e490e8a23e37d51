"""Translation of a compile request into the compiler's command-line tokens."""

from elmwrap.constants import MAKE_SUBCOMMAND, RTS_END, RTS_START
from elmwrap.models.options import (
    CompileMode,
    CompileRequest,
    CompilerOptions,
    OptionsInput,
    SourcesInput,
)

__all__ = ["compiler_args_from_options", "prepare_process_args", "prepare_request_args"]


def compiler_args_from_options(options: CompilerOptions) -> list[str]:
    """
    Render the flag part of the argument list.

    Flags always come out in the same order regardless of how the options were
    spelled, and the runtime options group comes last.
    """
    args: list[str] = []
    if options.debug:
        args.append("--debug")
    if options.optimize:
        args.append("--optimize")
    if options.output is not None:
        args += ["--output", str(options.output)]
    if options.report is not None:
        args += ["--report", options.report]
    if options.docs is not None:
        args += ["--docs", str(options.docs)]
    if options.help:
        args.append("--help")
    if options.runtime_options:
        args += [RTS_START, *options.runtime_options, RTS_END]
    return args


def prepare_request_args(request: CompileRequest) -> list[str]:
    return [MAKE_SUBCOMMAND, *request.sources, *compiler_args_from_options(request.options)]


def prepare_process_args(
    sources: SourcesInput,
    options: OptionsInput = None,
    mode: CompileMode = "process",
) -> list[str]:
    """
    Build the argument list for `elm` without running anything.

    Args:
        sources: Entry module path, or several of them.
        options: Compiler options; validated exactly as the compile calls do.
        mode: Which option set to validate against.

    Returns:
        The tokens following the executable, starting with ``make``.

    Raises:
        CompilerValidationError: If the options or sources are invalid.
    """
    return prepare_request_args(CompileRequest.build(sources, options, mode))
