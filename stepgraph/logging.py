"""Logging set-up for stepgraph.

Every record goes to stderr, so JSON written to stdout by the CLI can be
piped. Engine modules report per-step detail at DEBUG; it is only shown in
verbose mode.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Parent logger of the engine modules, held at WARNING unless verbose
ENGINE_LOGGER = "stepgraph.core"


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    Args:
        name: The name for the logger, typically __name__

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    # Only add a handler if it doesn't have one already
    if not logger.handlers:
        logger.addHandler(_stderr_handler())
        logger.propagate = False

    return logger


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set the root and engine log levels from the command line flags.

    Args:
        verbose: Show engine debug output (orphans, dropped steps, counts)
        quiet: Only show warnings and errors
    """
    if quiet:
        root_level = logging.WARNING
    elif verbose:
        root_level = logging.DEBUG
    else:
        root_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(_stderr_handler())

    # Engine module loggers leave their own level unset and inherit this one
    engine_level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger(ENGINE_LOGGER).setLevel(engine_level)
