"""Locating the compiler executable and starting it as a child process."""

import asyncio
import logging
import os
import shutil
import subprocess
from pathlib import Path
from types import TracebackType
from typing import IO

from elmwrap.console import console
from elmwrap.constants import ELM_BINARY_NAME
from elmwrap.exceptions import (
    ExecutableIsDirectoryError,
    ExecutableNotExecutableError,
    ExecutableNotFoundError,
    ProcessSpawnError,
)
from elmwrap.models.config import get_settings
from elmwrap.models.options import CompilerOptions

__all__ = [
    "ProcessHandle",
    "build_env",
    "check_executable",
    "is_verbose",
    "locate_executable",
    "resolve_executable",
    "run",
    "spawn",
    "spawn_async",
    "spawn_error",
]

logger = logging.getLogger(__name__)


class ProcessHandle:
    """
    A running compiler process, owned by the caller once returned.

    Thin wrapper over `subprocess.Popen` that keeps the argument list around.
    The raw process stays reachable through `process`.
    """

    def __init__(self, process: "subprocess.Popen[str]", args: list[str]) -> None:
        self.process = process
        self.args = args

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def stdout(self) -> IO[str] | None:
        return self.process.stdout

    @property
    def stderr(self) -> IO[str] | None:
        return self.process.stderr

    def poll(self) -> int | None:
        return self.process.poll()

    def wait(self, timeout: float | None = None) -> int:
        return self.process.wait(timeout=timeout)

    def communicate(self, timeout: float | None = None) -> tuple[str | None, str | None]:
        return self.process.communicate(timeout=timeout)

    def terminate(self) -> None:
        self.process.terminate()

    def kill(self) -> None:
        self.process.kill()

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.process.__exit__(exc_type, exc, tb)

    def __repr__(self) -> str:
        return f"<ProcessHandle pid={self.pid} returncode={self.returncode}>"


def is_verbose(options: CompilerOptions) -> bool:
    return options.verbose or get_settings().verbose


def resolve_executable(options: CompilerOptions) -> str:
    """
    Pick the compiler executable for a call.

    The `pathToElm` option wins, then the `ELMWRAP_PATH_TO_ELM` setting, then
    `elm`. A value without a path separator is looked up on PATH; any other
    value is made absolute against our working directory, so the file that is
    checked is the file that runs regardless of the compiler's `cwd`.
    """
    candidate = options.path_to_elm or get_settings().path_to_elm or ELM_BINARY_NAME
    if os.sep in candidate or (os.altsep and os.altsep in candidate):
        return os.path.abspath(candidate)
    return shutil.which(candidate) or candidate


def check_executable(path: str) -> None:
    """
    Make sure `path` names a file we can execute.

    Raises:
        ExecutableNotFoundError: If nothing exists at `path`.
        ExecutableIsDirectoryError: If `path` is a directory.
        ExecutableNotExecutableError: If `path` lacks execute permission.
    """
    target = Path(path)
    if not target.exists():
        raise ExecutableNotFoundError(f'Could not find Elm compiler "{path}". Is it installed?', path)
    if target.is_dir():
        raise ExecutableIsDirectoryError(
            f'Elm compiler path "{path}" is a directory, not an executable.', path
        )
    if not os.access(target, os.X_OK):
        raise ExecutableNotExecutableError(
            f'Elm compiler "{path}" is not executable. '
            "Do you need to give it executable permissions?",
            path,
        )


def locate_executable(options: CompilerOptions) -> str:
    executable = resolve_executable(options)
    check_executable(executable)
    return executable


def build_env(options: CompilerOptions) -> dict[str, str]:
    """The compiler's environment: a LANG default, then ours, then per-call overrides."""
    env = {"LANG": get_settings().lang}
    env.update(os.environ)
    env.update(options.env)
    return env


def spawn_error(executable: str, error: OSError, cwd: Path | None = None) -> ProcessSpawnError:
    """Describe an OS failure to start the compiler."""
    if cwd is not None and error.filename is not None and Path(error.filename) == cwd:
        message = f'Could not run Elm compiler "{executable}": working directory "{cwd}" does not exist.'
    elif isinstance(error, FileNotFoundError):
        message = f'Could not find Elm compiler "{executable}". Is it installed?'
    elif isinstance(error, PermissionError):
        message = (
            f'Elm compiler "{executable}" did not have permission to run. '
            "Do you need to give it executable permissions?"
        )
    else:
        message = f'Error attempting to run Elm compiler "{executable}":\n{error}'
    return ProcessSpawnError(message, executable)


def _announce(command: list[str], options: CompilerOptions) -> None:
    logger.debug("Spawning %s (cwd=%s)", command, options.cwd)
    if is_verbose(options):
        console.print("Running " + " ".join(command), markup=False, highlight=False, soft_wrap=True)


def spawn(
    executable: str,
    args: list[str],
    options: CompilerOptions,
    capture_output: bool = False,
) -> ProcessHandle:
    """
    Start the compiler and return without waiting for it.

    Args:
        executable: Path to an already checked compiler executable.
        args: Tokens following the executable.
        options: Validated options; supplies cwd, env and verbosity.
        capture_output: Pipe stdout and stderr instead of inheriting them.

    Raises:
        ProcessSpawnError: If the operating system cannot start the process.
    """
    command = [executable, *args]
    _announce(command, options)
    pipe = subprocess.PIPE if capture_output else None
    try:
        process = subprocess.Popen(  # noqa: S603
            command,
            cwd=options.cwd,
            env=build_env(options),
            stdout=pipe,
            stderr=pipe,
            text=True,
        )
    except OSError as e:
        raise spawn_error(executable, e, options.cwd) from e
    return ProcessHandle(process, args)


def run(
    executable: str,
    args: list[str],
    options: CompilerOptions,
    capture_output: bool = True,
) -> "subprocess.CompletedProcess[str]":
    """Run the compiler to completion, blocking the caller."""
    command = [executable, *args]
    _announce(command, options)
    try:
        return subprocess.run(  # noqa: S603
            command,
            cwd=options.cwd,
            env=build_env(options),
            capture_output=capture_output,
            text=True,
            check=False,
        )
    except OSError as e:
        raise spawn_error(executable, e, options.cwd) from e


async def spawn_async(
    executable: str,
    args: list[str],
    options: CompilerOptions,
) -> asyncio.subprocess.Process:
    """Start the compiler on the running event loop with stdout and stderr piped."""
    command = [executable, *args]
    _announce(command, options)
    try:
        return await asyncio.create_subprocess_exec(
            *command,
            cwd=options.cwd,
            env=build_env(options),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise spawn_error(executable, e, options.cwd) from e
