"""Running the compiler against a private temporary output file and collecting the result."""

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from elmwrap.args import prepare_request_args
from elmwrap.console import console
from elmwrap.constants import DEFAULT_OUTPUT_SUFFIX, TEMP_PREFIX
from elmwrap.invoker import is_verbose, locate_executable, run, spawn_async
from elmwrap.models.options import CompileRequest

__all__ = [
    "CompilationResult",
    "capture_output_async",
    "capture_output_sync",
    "temporary_output",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationResult:
    """Everything a finished compiler run left behind."""

    exit_code: int
    stdout: str
    stderr: str
    output: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def diagnostics(self) -> str:
        """The compiler's report: stderr, or stdout when stderr is empty."""
        return self.stderr if self.stderr.strip() else self.stdout


@contextmanager
def temporary_output(suffix: str = DEFAULT_OUTPUT_SUFFIX) -> Iterator[Path]:
    """
    Allocate a uniquely named file for one compile call and always remove it.

    The file is created empty so that its name is reserved for the lifetime of
    the call; concurrent calls therefore never share a path.
    """
    fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=suffix)
    os.close(fd)
    path = Path(name)
    logger.debug("Allocated temporary output %s", path)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Removed temporary output %s", path)


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


def _settle(
    exit_code: int,
    stdout: str,
    stderr: str,
    path: Path,
    request: CompileRequest,
) -> CompilationResult:
    if exit_code != 0:
        logger.debug("Compiler exited with %d", exit_code)
        return CompilationResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    if is_verbose(request.options) and stdout:
        console.print(stdout, markup=False, highlight=False, soft_wrap=True, end="")
    output = path.read_text(encoding="utf-8")
    return CompilationResult(exit_code=exit_code, stdout=stdout, stderr=stderr, output=output)


async def capture_output_async(
    request: CompileRequest,
    suffix: str = DEFAULT_OUTPUT_SUFFIX,
) -> CompilationResult:
    """
    Compile `request` into a temporary file and read it back.

    The executable is checked before the temporary file is allocated, and the
    file is gone by the time this returns or raises.
    """
    executable = locate_executable(request.options)
    with temporary_output(suffix) as path:
        staged = request.with_output(path)
        process = await spawn_async(executable, prepare_request_args(staged), staged.options)
        stdout, stderr = await process.communicate()
        exit_code = await process.wait()
        return _settle(exit_code, _decode(stdout), _decode(stderr), path, staged)


def capture_output_sync(
    request: CompileRequest,
    suffix: str = DEFAULT_OUTPUT_SUFFIX,
) -> CompilationResult:
    """Blocking counterpart of `capture_output_async`."""
    executable = locate_executable(request.options)
    with temporary_output(suffix) as path:
        staged = request.with_output(path)
        completed = run(executable, prepare_request_args(staged), staged.options)
        return _settle(completed.returncode, completed.stdout or "", completed.stderr or "", path, staged)
