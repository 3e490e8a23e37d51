from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from elmwrap.constants import DEFAULT_LANG

__all__ = ["Settings", "get_settings"]


class Settings(BaseSettings):
    """
    Process-wide defaults for elmwrap.

    Loaded from environment variables with 'ELMWRAP_' prefix or a .env file.
    Options passed to an individual call always take precedence.
    """

    path_to_elm: str | None = None
    """Compiler executable used when a call does not pass `pathToElm`."""

    node_path: str | None = None
    """Node.js binary used to host worker programs."""

    verbose: bool = False
    """Force verbose pass-through output for every call."""

    lang: str = DEFAULT_LANG
    """LANG value given to the compiler unless the environment sets one."""

    model_config = SettingsConfigDict(
        env_prefix="ELMWRAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
