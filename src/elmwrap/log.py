import logging

from rich.logging import RichHandler

from elmwrap.console import err_console

__all__ = ["configure_logging"]

LOGGER_NAME = "elmwrap"


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """
    Route elmwrap's log records to stderr through rich.

    The library never calls this itself; applications opt in. Calling it again
    replaces the handler installed by the previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
