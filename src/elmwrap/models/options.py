"""Closed configuration type for compiler calls and the validator that builds it."""

import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from elmwrap.constants import REMOVED_OPTIONS
from elmwrap.exceptions import InvalidOptionError, UnknownOptionError

__all__ = [
    "CompileMode",
    "CompileRequest",
    "CompilerOptions",
    "OptionsInput",
    "SourcesInput",
    "normalize_sources",
    "recognized_keys",
    "validate_options",
]

CompileMode = Literal["process", "string"]

# Keys that only make sense when the caller owns the output destination.
_PROCESS_ONLY_KEYS = frozenset({"output"})


class CompilerOptions(BaseModel):
    """
    Options accepted by every compile call.

    Keys may be spelled in camelCase (``pathToElm``) or snake_case
    (``path_to_elm``). Any other key is rejected.
    """

    cwd: Path | None = None
    """Working directory for the compiler process."""

    path_to_elm: str | None = Field(default=None, alias="pathToElm")
    """Override for the compiler executable."""

    verbose: bool = False
    """Print the command line and compiler output."""

    output: Path | None = None
    """Destination of the compiled artifact (`--output`)."""

    runtime_options: tuple[str, ...] = Field(default=(), alias="runtimeOptions")
    """Raw flags for the compiler's runtime, passed inside `+RTS ... -RTS`."""

    debug: bool = False
    """Enable the time-travelling debugger (`--debug`)."""

    optimize: bool = False
    """Produce optimized output (`--optimize`)."""

    report: Literal["json"] | None = None
    """Diagnostic report format (`--report`)."""

    docs: Path | None = None
    """Write module documentation to this path (`--docs`)."""

    help: bool = False
    """Ask the compiler for its usage text (`--help`)."""

    env: dict[str, str] = Field(default_factory=dict)
    """Extra environment variables for the compiler process."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


OptionsInput = Mapping[str, Any] | CompilerOptions | None
SourcesInput = str | os.PathLike[str] | Iterable[str | os.PathLike[str]]


def recognized_keys(mode: CompileMode = "process") -> frozenset[str]:
    """Return every key spelling accepted in the given mode."""
    keys: set[str] = set()
    for name, field in CompilerOptions.model_fields.items():
        keys.add(name)
        if field.alias:
            keys.add(field.alias)
    if mode == "string":
        keys -= _PROCESS_ONLY_KEYS
    return frozenset(keys)


def _unknown_option_message(key: str, mode: CompileMode) -> str:
    if key in REMOVED_OPTIONS:
        removed = REMOVED_OPTIONS[key]
        return (
            f"elmwrap received the `{removed.name}` option, but that was removed "
            f"in Elm 0.19. {removed.hint}"
        )
    if mode == "string" and key in _PROCESS_ONLY_KEYS:
        return (
            f"elmwrap was given the `{key}` option, but compile_to_string manages "
            "its own output file. Use compile() to write to a path of your choice."
        )
    return f"elmwrap was given an unrecognized Elm compiler option: {key}"


def validate_options(options: OptionsInput = None, mode: CompileMode = "process") -> CompilerOptions:
    """
    Check options against the recognized keys for a mode and build a `CompilerOptions`.

    Args:
        options: A mapping of option names to values, an existing `CompilerOptions`,
            or None for defaults.
        mode: "process" for calls where the caller owns the output path,
            "string" for calls that capture output through a temporary file.

    Returns:
        The validated, immutable options.

    Raises:
        UnknownOptionError: If any key is outside the recognized set.
        InvalidOptionError: If a recognized key carries an unusable value.
    """
    if isinstance(options, CompilerOptions):
        if mode == "string" and options.output is not None:
            raise UnknownOptionError(_unknown_option_message("output", mode), ["output"])
        return options

    raw = dict(options or {})
    allowed = recognized_keys(mode)
    unknown = [key for key in raw if key not in allowed]
    if unknown:
        message = "\n".join(_unknown_option_message(key, mode) for key in unknown)
        raise UnknownOptionError(message, unknown)

    # Unset values mean "not given", as with omitted keys.
    present = {key: value for key, value in raw.items() if value is not None}
    try:
        return CompilerOptions.model_validate(present)
    except PydanticValidationError as e:
        raise InvalidOptionError(f"Invalid Elm compiler options:\n{e}") from e


def normalize_sources(sources: SourcesInput) -> tuple[str, ...]:
    """Turn a single path or a collection of paths into a tuple of strings."""
    if isinstance(sources, (str, os.PathLike)):
        paths = (os.fspath(sources),)
    else:
        try:
            paths = tuple(os.fspath(source) for source in sources)
        except TypeError as e:
            raise InvalidOptionError(f"Invalid source path: {e}") from e

    if not paths:
        raise InvalidOptionError("At least one source file is required.")
    return paths


class CompileRequest(BaseModel):
    """A validated pair of source files and options, ready to become an argument list."""

    sources: tuple[str, ...]
    """Entry modules to compile, in order."""

    options: CompilerOptions
    """Validated options for the call."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def build(
        cls,
        sources: SourcesInput,
        options: OptionsInput = None,
        mode: CompileMode = "process",
    ) -> "CompileRequest":
        """Validate options first, then sources, and bundle them."""
        validated = validate_options(options, mode)
        return cls(sources=normalize_sources(sources), options=validated)

    def with_output(self, output: str | os.PathLike[str]) -> "CompileRequest":
        """Return a copy whose compiled artifact goes to `output`."""
        options = self.options.model_copy(update={"output": Path(output)})
        return self.model_copy(update={"options": options})
