from .config import Settings, get_settings
from .options import CompilerOptions, CompileRequest, validate_options

__all__ = [
    "CompileRequest",
    "CompilerOptions",
    "Settings",
    "get_settings",
    "validate_options",
]
