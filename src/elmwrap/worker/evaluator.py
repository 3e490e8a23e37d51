import logging
import os
from pathlib import Path
from typing import Any

from elmwrap.compiler import compile_to_string
from elmwrap.models.options import CompilerOptions, OptionsInput
from elmwrap.worker.handle import WorkerHandle
from elmwrap.worker.sandbox import NodeSandbox, Sandbox

__all__ = ["compile_worker"]

logger = logging.getLogger(__name__)


def _with_cwd(options: OptionsInput, base_dir: Path) -> OptionsInput:
    if isinstance(options, CompilerOptions):
        return options.model_copy(update={"cwd": base_dir})
    return {**dict(options or {}), "cwd": base_dir}


async def compile_worker(
    base_dir: str | os.PathLike[str],
    source_path: str | os.PathLike[str],
    module_name: str,
    flags: Any = None,
    *,
    options: OptionsInput = None,
    sandbox: Sandbox | None = None,
) -> WorkerHandle:
    """
    Compile a headless Elm program and start it as a worker.

    Args:
        base_dir: Project directory holding `elm.json`; the compiler runs there.
        source_path: Entry module, relative to `base_dir` or absolute.
        module_name: Dotted name of the program inside the compiled namespace.
        flags: JSON-compatible value passed to the program's `init`.
        options: Extra compiler options; `cwd` is always `base_dir`.
        sandbox: Runtime used to execute the compiled code. Defaults to Node.js.

    Returns:
        A handle exposing the worker's ports.

    Raises:
        CompilerValidationError: If the compile call is invalid.
        CompilationError: If the program does not compile.
        EntryModuleNotFoundError: If `module_name` is not in the compiled output.
        WorkerRuntimeError: If the runtime cannot start the program.
    """
    script = await compile_to_string(source_path, _with_cwd(options, Path(base_dir)))
    logger.debug("Compiled %s (%d characters)", source_path, len(script))
    return await (sandbox or NodeSandbox()).instantiate(script, module_name, flags)
