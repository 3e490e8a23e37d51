from dataclasses import dataclass
from typing import Literal

__all__ = [
    "DEFAULT_LANG",
    "DEFAULT_OUTPUT_SUFFIX",
    "ELM_BINARY_NAME",
    "FAILURE_MARKERS",
    "FAILURE_PREFIX",
    "FailureKind",
    "MAKE_SUBCOMMAND",
    "REMOVED_OPTIONS",
    "RTS_END",
    "RTS_START",
    "RemovedOption",
    "TEMP_PREFIX",
]

# Compiler
ELM_BINARY_NAME = "elm"
MAKE_SUBCOMMAND = "make"
RTS_START = "+RTS"
RTS_END = "-RTS"
DEFAULT_LANG = "en_US.UTF-8"

# Output capture
DEFAULT_OUTPUT_SUFFIX = ".js"
TEMP_PREFIX = "elmwrap-"

# Failure classification
FAILURE_PREFIX = "Compilation failed"

FailureKind = Literal["parse", "type", "generic"]

FAILURE_MARKERS: dict[FailureKind, tuple[str, ...]] = {
    "parse": ("PARSE ERROR", "SYNTAX PROBLEM"),
    "type": ("TYPE MISMATCH",),
}


@dataclass(frozen=True)
class RemovedOption:
    """An option accepted by older compiler releases that Elm 0.19 dropped."""

    name: str
    hint: str


REMOVED_OPTIONS: dict[str, RemovedOption] = {
    "yes": RemovedOption(
        name="yes",
        hint="Try re-running without passing the `yes` option.",
    ),
    "warn": RemovedOption(
        name="warn",
        hint="Try re-running without passing the `warn` option.",
    ),
    "pathToMake": RemovedOption(
        name="pathToMake",
        hint="Try using the `pathToElm` option instead.",
    ),
}
