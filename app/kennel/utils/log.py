"""Logging setup for the command line entry points."""

import logging

from rich.logging import RichHandler

from kennel.utils.formatting import err_console

_LOGGER_NAME = "kennel"


def configure_logging(debug: bool = False, quiet: bool = False) -> None:
    """Route the ``kennel`` logger through Rich on stderr.

    Args:
        debug: Log everything down to DEBUG, with module paths.
        quiet: Only log errors.
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_path=debug,
        rich_tracebacks=debug,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(level)
